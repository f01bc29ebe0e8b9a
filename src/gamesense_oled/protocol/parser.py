"""Parser helpers turning raw JSON into typed payloads and bindings."""

from __future__ import annotations

import json
from typing import Any, Mapping, Tuple

from .messages import EventBinding, ScreenHandler
from .payloads import ScreenData, decode_screen_data, decode_screen_datas
from .wire import PayloadDecodeError


class PayloadParser:
    """Parse JSON/mapping payloads into typed screen data."""

    def parse(self, data: Mapping[str, Any]) -> ScreenData:
        return decode_screen_data(data)

    def parse_json(self, raw: str | bytes | bytearray) -> ScreenData:
        return self.parse(self._load_object(raw))

    def parse_datas(self, data: Any) -> Tuple[ScreenData, ...]:
        return decode_screen_datas(data, "datas")

    def parse_handler(self, data: Mapping[str, Any]) -> ScreenHandler:
        return ScreenHandler.from_dict(data)

    def parse_binding(self, data: Mapping[str, Any]) -> EventBinding:
        return EventBinding.from_dict(data)

    def parse_binding_json(self, raw: str | bytes | bytearray) -> EventBinding:
        return self.parse_binding(self._load_object(raw))

    @staticmethod
    def _load_object(raw: str | bytes | bytearray) -> Mapping[str, Any]:
        try:
            mapping = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PayloadDecodeError("", f"invalid JSON: {exc}") from exc
        if not isinstance(mapping, Mapping):
            raise PayloadDecodeError("", "decoded payload must be a JSON object")
        return mapping


__all__ = ["PayloadParser"]
