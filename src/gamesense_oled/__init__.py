"""
gamesense-oled: drive SteelSeries OLED screens through the GameSense engine.

The :mod:`gamesense_oled.protocol` package models the display payloads and
request bodies; :mod:`gamesense_oled.client` registers a game, keeps it alive
and pushes events.
"""

__version__ = "0.1.0"

from gamesense_oled.client import GameSenseSession, SessionState  # noqa: E402
from gamesense_oled.protocol import Icon, OledDevice  # noqa: E402

__all__ = ["GameSenseSession", "Icon", "OledDevice", "SessionState", "__version__"]
