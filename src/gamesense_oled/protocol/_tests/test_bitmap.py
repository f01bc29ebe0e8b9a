from __future__ import annotations

import numpy as np
import pytest

from gamesense_oled.protocol import DeviceImageFrame, ImageFrame, OledDevice, decode_frame
from gamesense_oled.protocol.bitmap import device_image_frame, image_frame, pack_bitmap, unpack_bitmap


def _checkerboard(device: OledDevice) -> np.ndarray:
    rows, cols = np.indices((device.height, device.width))
    return (rows + cols) % 2 == 0


def test_pack_layout_is_row_major_msb_first() -> None:
    mask = np.zeros((36, 128), dtype=np.uint8)
    mask[0, 0] = 1
    mask[1, 7] = 1

    packed = pack_bitmap(mask, OledDevice.RIVAL)

    assert len(packed) == 576
    assert packed[0] == 0x80
    # Row 1 starts 16 bytes in; column 7 is the lowest bit.
    assert packed[16] == 0x01
    assert sum(bin(byte).count("1") for byte in packed) == 2


@pytest.mark.parametrize("device", list(OledDevice))
def test_unpack_restores_mask(device: OledDevice) -> None:
    mask = _checkerboard(device)

    restored = unpack_bitmap(pack_bitmap(mask, device), device)

    assert restored.shape == (device.height, device.width)
    assert np.array_equal(restored, mask)


def test_shape_mismatch_is_rejected() -> None:
    with pytest.raises(ValueError, match="128x40"):
        pack_bitmap(np.zeros((36, 128)), OledDevice.APEX)
    with pytest.raises(ValueError):
        unpack_bitmap(bytes(576), OledDevice.APEX)


def test_image_frame_encodes() -> None:
    frame = image_frame(_checkerboard(OledDevice.GAMEDAC), OledDevice.GAMEDAC)

    assert isinstance(frame, ImageFrame)
    assert len(frame.to_dict()["image-data"]) == 832


def test_device_image_frame_needs_every_family() -> None:
    masks = {device: _checkerboard(device) for device in OledDevice}

    frame = device_image_frame(masks)

    assert isinstance(decode_frame(frame.to_dict()), DeviceImageFrame)
    assert frame.image_for(OledDevice.APEX) == pack_bitmap(masks[OledDevice.APEX], OledDevice.APEX)

    del masks[OledDevice.RIVAL]
    with pytest.raises(ValueError, match="RIVAL"):
        device_image_frame(masks)
