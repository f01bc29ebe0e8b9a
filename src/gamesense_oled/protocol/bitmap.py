"""Pack and unpack 1-bit OLED bitmaps."""

from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from .icons import OledDevice
from .payloads import DEVICE_SLOTS, DeviceImageFrame, FrameModifiers, ImageFrame


def pack_bitmap(mask: Any, device: OledDevice) -> bytes:
    """Pack a ``(height, width)`` mask into the engine's row-major 1-bit layout.

    Any non-zero pixel is lit. The most significant bit of each byte is the
    leftmost pixel.
    """

    arr = np.asarray(mask)
    expected = (device.height, device.width)
    if arr.shape != expected:
        raise ValueError(f"bitmap for {device.resolution} must have shape {expected}, got {arr.shape}")
    return np.packbits(arr.astype(bool, copy=False), axis=None).tobytes()


def unpack_bitmap(data: bytes, device: OledDevice) -> np.ndarray:
    """Inverse of :func:`pack_bitmap`; returns a boolean ``(height, width)`` array."""

    if len(data) != device.image_bytes:
        raise ValueError(
            f"bitmap for {device.resolution} must be {device.image_bytes} bytes, got {len(data)}"
        )
    bits = np.unpackbits(np.frombuffer(data, dtype=np.uint8))
    return bits.reshape(device.height, device.width).astype(bool)


def image_frame(mask: Any, device: OledDevice, modifiers: FrameModifiers | None = None) -> ImageFrame:
    return ImageFrame(image_data=pack_bitmap(mask, device), modifiers=modifiers)


def device_image_frame(masks: Mapping[OledDevice, Any]) -> DeviceImageFrame:
    """Build a per-device frame from one mask per OLED family."""

    missing = [device.name for _, device in DEVICE_SLOTS if device not in masks]
    if missing:
        raise ValueError(f"per-device image requires masks for: {', '.join(missing)}")
    images = {attr: pack_bitmap(masks[device], device) for attr, device in DEVICE_SLOTS}
    return DeviceImageFrame(**images)


__all__ = ["device_image_frame", "image_frame", "pack_bitmap", "unpack_bitmap"]
