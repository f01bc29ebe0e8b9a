"""Icon codes and OLED device families understood by the GameSense engine."""

from __future__ import annotations

from enum import Enum, IntEnum

# Generic device-type selector matching every OLED screen.
SCREENED = "screened"


class Icon(IntEnum):
    """Icons the engine can draw next to a frame.

    The numeric codes are matched by the engine; the gaps at 9, 26 and 34
    are part of the engine's table.
    """

    NoIcon = 0
    HealthA = 1
    Armor = 2
    Ammo = 3
    Money = 4
    Flashbang = 5
    KillsA = 6
    Headshot = 7
    Helmet = 8
    Hunger = 10
    Air = 11
    Compass = 12
    Tool = 13
    ManaA = 14
    Clock = 15
    Lightning = 16
    Backpack = 17
    AtSymbol = 18
    Muted = 19
    Talking = 20
    Connect = 21
    Disconnect = 22
    Music = 23
    Play = 24
    Pause = 25
    CPU = 27
    GPU = 28
    RAM = 29
    Assists = 30
    CreepScore = 31
    Dead = 32
    Dragon = 33
    Enemies = 35
    GameStart = 36
    Gold = 37
    HealthB = 38
    KillsB = 39
    ManaB = 40
    Teammates = 41
    Timer = 42
    Temperature = 43


class OledDevice(Enum):
    """OLED device families, keyed by their screen geometry."""

    RIVAL = (128, 36)
    APEX = (128, 40)
    ARCTIS_PRO_WIRELESS = (128, 48)
    GAMEDAC = (128, 52)

    @property
    def width(self) -> int:
        return self.value[0]

    @property
    def height(self) -> int:
        return self.value[1]

    @property
    def resolution(self) -> str:
        return f"{self.width}x{self.height}"

    @property
    def device_type(self) -> str:
        """Engine device-type selector, e.g. ``screened-128x40``."""

        return f"{SCREENED}-{self.resolution}"

    @property
    def image_bytes(self) -> int:
        """Size of a packed 1-bit frame for this screen."""

        return self.width * self.height // 8

    @property
    def image_field(self) -> str:
        return f"image-data-{self.resolution}"


IMAGE_SIZES = frozenset(device.image_bytes for device in OledDevice)


__all__ = ["IMAGE_SIZES", "SCREENED", "Icon", "OledDevice"]
