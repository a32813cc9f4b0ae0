"""
Per-channel broadcast throttle

Bursts of color changes on one channel are coalesced into at most one
outbound broadcast per cooldown window. The first change in an idle channel
is sent right away; later changes inside the window share a single deferred
send that fires when the window closes and reads the channel state as it is
at that moment.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("colorwheel")

Scheduler = Callable[[float, Callable[[], None]], Any]


def loop_scheduler(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
    """Schedule `callback` on the running event loop after `delay` seconds"""
    return asyncio.get_running_loop().call_later(delay, callback)


@dataclass
class BroadcastWindow:
    end: float
    deferred: Optional[Any] = None


class BroadcastThrottle:
    """
    Channel states:
      idle    - no window recorded, or the window has closed
      active  - inside a window, nothing deferred
      pending - inside a window, one deferred send scheduled
    """

    def __init__(
        self,
        cooldown: float,
        clock: Optional[Callable[[], float]] = None,
        schedule: Optional[Scheduler] = None,
    ):
        self.cooldown = cooldown
        self._clock = clock or time.monotonic
        self._schedule = schedule or loop_scheduler
        self._windows: Dict[str, BroadcastWindow] = {}

    def attempt(self, channel_id: str, send_now: Callable[[], None]) -> None:
        now = self._clock()
        window = self._windows.get(channel_id)

        if window is not None and window.deferred is not None:
            # Already pending; this change rides on the scheduled send.
            logger.debug("Broadcast for c:%s already scheduled", channel_id)
            return

        if window is None or window.end <= now:
            send_now()
            self._windows[channel_id] = BroadcastWindow(end=now + self.cooldown)
            return

        delay = window.end - now
        window.deferred = self._schedule(
            delay, lambda: self._fire(channel_id, send_now)
        )
        logger.debug("Deferred broadcast for c:%s in %.3fs", channel_id, delay)

    def _fire(self, channel_id: str, send_now: Callable[[], None]) -> None:
        # Reopen the window first; send_now may raise.
        self._windows[channel_id] = BroadcastWindow(end=self._clock() + self.cooldown)
        send_now()

    def pending(self, channel_id: str) -> bool:
        window = self._windows.get(channel_id)
        return window is not None and window.deferred is not None

    def window_end(self, channel_id: str) -> Optional[float]:
        window = self._windows.get(channel_id)
        return window.end if window else None

    def shutdown(self) -> None:
        """Cancel deferred sends; only used when the application stops"""
        for window in self._windows.values():
            if window.deferred is not None and hasattr(window.deferred, "cancel"):
                window.deferred.cancel()
            window.deferred = None
