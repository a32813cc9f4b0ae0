#!/usr/bin/env python3
"""
Color Wheel - Extension Backend Service entry point
Viewer color cycling + per-channel broadcast throttling + cooldown cleanup
"""
import asyncio
import contextlib
import logging
import ssl
import sys
from typing import Optional

from aiohttp import web

from colorwheel.api import (
    COOLDOWN_RESET_INTERVAL, COOLDOWN_TASK, SERVICE,
    cors_middleware, reset_user_cooldowns, setup_routes
)
from colorwheel.config import USER_COOLDOWN_RESET_INTERVAL, ConfigError, load_settings
from colorwheel.service import ColorService

logger = logging.getLogger("colorwheel")


async def start_background_tasks(app):
    app[COOLDOWN_TASK] = asyncio.create_task(
        reset_user_cooldowns(app[SERVICE], app[COOLDOWN_RESET_INTERVAL])
    )


async def cleanup_background_tasks(app):
    app[COOLDOWN_TASK].cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await app[COOLDOWN_TASK]
    await app[SERVICE].close()


def create_app(
    service: ColorService,
    cooldown_reset_interval: float = USER_COOLDOWN_RESET_INTERVAL,
) -> web.Application:
    """Create and configure the aiohttp application"""
    app = web.Application(middlewares=[cors_middleware])
    app[SERVICE] = service
    app[COOLDOWN_RESET_INTERVAL] = cooldown_reset_interval

    setup_routes(app)

    app.on_startup.append(start_background_tasks)
    app.on_cleanup.append(cleanup_background_tasks)
    logger.info("🎡 Color wheel service ready")
    return app


def make_ssl_context(settings) -> Optional[ssl.SSLContext]:
    if not settings.cert:
        return None
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(settings.cert, settings.key)
    return context


def main(argv=None):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        settings = load_settings(argv)
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(1)

    if settings.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    service = ColorService.from_settings(settings)
    app = create_app(service, settings.user_cooldown_reset_interval)
    ssl_context = make_ssl_context(settings)

    scheme = "https" if ssl_context else "http"
    logger.info("🚀 Server running at %s://%s:%s", scheme, settings.host, settings.port)

    web.run_app(app, host=settings.host, port=settings.port, ssl_context=ssl_context)


if __name__ == "__main__":
    main()
