"""
ColorService: owns all channel/user state and ties verification, rate
limiting, color rotation and broadcasting together
"""
import asyncio
import logging
from typing import Callable, Optional, Set

from .auth import Claims, verify_and_decode
from .colors import ColorValue
from .config import (
    CHANNEL_COOLDOWN, COLOR_WHEEL_ROTATION, USER_COOLDOWN, Settings,
)
from .pubsub import PubSubDispatcher
from .state import ChannelColors, UserCooldowns
from .throttle import BroadcastThrottle, Scheduler

logger = logging.getLogger("colorwheel")


class RateLimitedError(Exception):
    """The user clicked again before their cooldown lapsed"""


class ColorService:
    def __init__(
        self,
        secret: bytes,
        dispatcher: PubSubDispatcher,
        user_cooldown: float = USER_COOLDOWN,
        channel_cooldown: float = CHANNEL_COOLDOWN,
        rotation: float = COLOR_WHEEL_ROTATION,
        clock: Optional[Callable[[], float]] = None,
        schedule: Optional[Scheduler] = None,
    ):
        self.secret = secret
        self.dispatcher = dispatcher
        self.rotation = rotation
        self.colors = ChannelColors()
        self.user_cooldowns = UserCooldowns(user_cooldown, clock=clock)
        self.throttle = BroadcastThrottle(channel_cooldown, clock=clock, schedule=schedule)
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ColorService":
        dispatcher = PubSubDispatcher(
            client_id=settings.client_id,
            secret=settings.secret,
            owner_id=settings.owner_id,
            api_base=settings.api_base,
            # The developer rig uses a self-signed certificate.
            verify_ssl=not settings.local,
        )
        return cls(
            settings.secret,
            dispatcher,
            user_cooldown=settings.user_cooldown,
            channel_cooldown=settings.channel_cooldown,
            rotation=settings.rotation,
        )

    def authenticate(self, header: Optional[str]) -> Claims:
        return verify_and_decode(header, self.secret)

    def cycle_color(self, claims: Claims) -> ColorValue:
        """Rotate the channel's color on behalf of a viewer and broadcast it"""
        if not self.user_cooldowns.try_acquire(claims.user_id):
            raise RateLimitedError(claims.user_id)

        logger.debug("🎨 Cycling color for c:%s on behalf of u:%s", claims.channel_id, claims.user_id)
        color = self.colors.rotate(claims.channel_id, self.rotation)

        channel_id = claims.channel_id
        self.throttle.attempt(channel_id, lambda: self.send_broadcast(channel_id))
        return color

    def query_color(self, claims: Claims) -> ColorValue:
        color = self.colors.get(claims.channel_id)
        logger.debug("Sending color %s to u:%s", color, claims.user_id)
        return color

    def send_broadcast(self, channel_id: str) -> asyncio.Task:
        """Start a broadcast of the channel's current color without waiting for it"""
        color = self.colors.get(channel_id)
        task = asyncio.get_running_loop().create_task(
            self.dispatcher.dispatch(channel_id, color.hex)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def reset_user_cooldowns(self) -> None:
        count = len(self.user_cooldowns)
        self.user_cooldowns.reset()
        if count:
            logger.debug("🧹 Cleared %d user cooldowns", count)

    async def close(self) -> None:
        self.throttle.shutdown()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        await self.dispatcher.close()
