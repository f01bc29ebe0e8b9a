"""Shorthand constructors for common screen layouts."""

from __future__ import annotations

from typing import Sequence

from .icons import SCREENED, OledDevice
from .messages import ScreenHandler
from .payloads import (
    DataAccessor,
    FrameModifiers,
    LineData,
    MultiLineFrame,
    ProgressBarModifier,
    ScreenData,
    SingleLineFrame,
    TextModifier,
)


def _accessor(arg: str | None, context_frame_key: str | None) -> DataAccessor | None:
    if arg is None and context_frame_key is None:
        return None
    return DataAccessor(arg=arg, context_frame_key=context_frame_key)


def text_line(
    prefix: str = "",
    suffix: str = "",
    *,
    bold: bool = False,
    wrap: int = 0,
    context_frame_key: str | None = None,
    arg: str | None = None,
) -> LineData:
    return LineData(
        content=TextModifier(prefix=prefix, suffix=suffix, bold=bold, wrap=wrap),
        accessor=_accessor(arg, context_frame_key),
    )


def progress_line(*, context_frame_key: str | None = None, arg: str | None = None) -> LineData:
    return LineData(content=ProgressBarModifier(), accessor=_accessor(arg, context_frame_key))


def multi_line(*lines: LineData, modifiers: FrameModifiers | None = None) -> MultiLineFrame:
    return MultiLineFrame(lines=lines, modifiers=modifiers)


def single_line(
    prefix: str = "",
    suffix: str = "",
    *,
    bold: bool = False,
    wrap: int = 0,
    modifiers: FrameModifiers | None = None,
    context_frame_key: str | None = None,
    arg: str | None = None,
) -> SingleLineFrame:
    return SingleLineFrame(
        content=TextModifier(prefix=prefix, suffix=suffix, bold=bold, wrap=wrap),
        modifiers=modifiers,
        accessor=_accessor(arg, context_frame_key),
    )


def screen_handler(
    datas: Sequence[ScreenData],
    device: OledDevice | str = SCREENED,
    zone: str = "one",
) -> ScreenHandler:
    device_type = device.device_type if isinstance(device, OledDevice) else str(device)
    return ScreenHandler(device_type=device_type, zone=zone, datas=tuple(datas))


__all__ = ["multi_line", "progress_line", "screen_handler", "single_line", "text_line"]
