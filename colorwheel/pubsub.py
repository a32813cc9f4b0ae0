"""
Outbound broadcasts to the extension pub/sub API
"""
import asyncio
import json
import logging
from typing import Optional

import aiohttp

from .auth import BEARER_PREFIX, make_server_token

logger = logging.getLogger("colorwheel")

TWITCH_API = "https://api.twitch.tv"
LOCAL_RIG_API = "https://localhost.rig.twitch.tv:3000"


class UpstreamBroadcastError(Exception):
    """The pub/sub API answered with a non-2xx status"""

    def __init__(self, channel_id: str, status: int, body: str = ""):
        super().__init__(f"broadcast to c:{channel_id} returned {status}")
        self.channel_id = channel_id
        self.status = status
        self.body = body


class PubSubDispatcher:
    """
    Sends a channel's color to every viewer of that channel.

    Delivery is best effort: failures are logged and reported through the
    return value of `dispatch`, never raised.
    """

    def __init__(
        self,
        client_id: str,
        secret: bytes,
        owner_id: str,
        api_base: str = TWITCH_API,
        verify_ssl: bool = True,
    ):
        self.client_id = client_id
        self.secret = secret
        self.owner_id = owner_id
        self.api_base = api_base.rstrip("/")
        self.verify_ssl = verify_ssl
        self._session: Optional[aiohttp.ClientSession] = None

    def message_url(self, channel_id: str) -> str:
        return f"{self.api_base}/extensions/message/{channel_id}"

    def build_request(self, channel_id: str, color: str):
        """Return (url, headers, body) for a broadcast of `color`"""
        headers = {
            "Client-Id": self.client_id,
            "Content-Type": "application/json",
            "Authorization": BEARER_PREFIX + make_server_token(
                channel_id, self.secret, self.owner_id
            ),
        }
        body = json.dumps({
            "content_type": "application/json",
            "message": color,
            "targets": ["broadcast"],
        })
        return self.message_url(channel_id), headers, body

    async def dispatch(self, channel_id: str, color: str) -> bool:
        url, headers, body = self.build_request(channel_id, color)
        logger.debug("📣 Broadcasting color %s for c:%s", color, channel_id)

        try:
            await self._post(channel_id, url, headers, body)
        except UpstreamBroadcastError as e:
            logger.warning("Message to c:%s returned %s: %s", channel_id, e.status, e.body)
            return False
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.error("Error sending message to channel %s: %s", channel_id, e)
            return False

        return True

    async def _post(self, channel_id: str, url: str, headers: dict, body: str) -> None:
        session = self._get_session()
        async with session.post(url, headers=headers, data=body, ssl=self.verify_ssl) as resp:
            text = await resp.text()
            if not 200 <= resp.status < 300:
                raise UpstreamBroadcastError(channel_id, resp.status, text)
            logger.info("Message to c:%s returned %s", channel_id, resp.status)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
