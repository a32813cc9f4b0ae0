"""
In-memory state for channel colors and per-user cooldowns
"""
import time
from typing import Callable, Dict, Optional

from .colors import ColorValue, DEFAULT_COLOR


class ChannelColors:
    """Channel color store: channel_id -> ColorValue"""

    def __init__(self, default: ColorValue = DEFAULT_COLOR):
        self.default = default
        self._colors: Dict[str, ColorValue] = {}

    def get(self, channel_id: str) -> ColorValue:
        """Current color for the channel, or the default. Never creates an entry."""
        return self._colors.get(channel_id, self.default)

    def set(self, channel_id: str, color: ColorValue) -> None:
        self._colors[channel_id] = color

    def rotate(self, channel_id: str, degrees: float) -> ColorValue:
        # Read, rotate and store without yielding to the event loop, so two
        # cycles for one channel always apply one after the other.
        color = self.get(channel_id).rotate(degrees)
        self._colors[channel_id] = color
        return color

    def __contains__(self, channel_id: str) -> bool:
        return channel_id in self._colors

    def __len__(self) -> int:
        return len(self._colors)


class UserCooldowns:
    """
    Spam prevention: user_id -> monotonic time until which the user is
    cooling down.

    `reset` drops every entry at once, including cooldowns that have not
    lapsed yet. It bounds memory for the many short-lived opaque user ids
    logged-out viewers produce; a user caught by the reset gets one early
    click.
    """

    def __init__(self, cooldown: float, clock: Optional[Callable[[], float]] = None):
        self.cooldown = cooldown
        self._clock = clock or time.monotonic
        self._expiries: Dict[str, float] = {}

    def try_acquire(self, user_id: str) -> bool:
        now = self._clock()
        expiry = self._expiries.get(user_id)
        if expiry is not None and expiry > now:
            return False
        self._expiries[user_id] = now + self.cooldown
        return True

    def reset(self) -> None:
        self._expiries = {}

    def __len__(self) -> int:
        return len(self._expiries)
