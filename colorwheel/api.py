"""
HTTP API handlers for the color wheel extension backend
"""
import asyncio
import logging

from aiohttp import web

from .auth import AuthError
from .service import ColorService, RateLimitedError

logger = logging.getLogger("colorwheel")

SERVICE = web.AppKey("service", ColorService)
COOLDOWN_TASK = web.AppKey("cooldown_task", asyncio.Task)
COOLDOWN_RESET_INTERVAL = web.AppKey("cooldown_reset_interval", float)

INVALID_JWT = "Invalid JWT"
COOLDOWN_MESSAGE = "Please wait before clicking again"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
}
PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Authorization, Content-Type",
    "Access-Control-Max-Age": "86400",
}


def _unauthorized() -> web.Response:
    # One response for every authentication failure.
    return web.json_response({"ok": False, "error": INVALID_JWT}, status=401)


# ============================================================
# MIDDLEWARE
# ============================================================

@web.middleware
async def cors_middleware(request, handler):
    """Let the extension frontend call us from any origin"""
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=PREFLIGHT_HEADERS)

    try:
        response = await handler(request)
    except web.HTTPException as e:
        e.headers.update(CORS_HEADERS)
        raise
    response.headers.update(CORS_HEADERS)
    return response


# ============================================================
# COLOR
# ============================================================

async def color_cycle(request: web.Request) -> web.Response:
    """Rotate the channel's color by one step"""
    service = request.app[SERVICE]
    try:
        claims = service.authenticate(request.headers.get("Authorization"))
    except AuthError:
        return _unauthorized()

    try:
        color = service.cycle_color(claims)
    except RateLimitedError:
        logger.warning("Cooldown active for u:%s", claims.user_id)
        return web.json_response(
            {"ok": False, "error": COOLDOWN_MESSAGE},
            status=429
        )

    return web.Response(text=color.hex)


async def color_query(request: web.Request) -> web.Response:
    """Return the channel's current color"""
    service = request.app[SERVICE]
    try:
        claims = service.authenticate(request.headers.get("Authorization"))
    except AuthError:
        return _unauthorized()

    return web.Response(text=service.query_color(claims).hex)


# ============================================================
# HOUSEKEEPING
# ============================================================

async def reset_user_cooldowns(service: ColorService, interval: float):
    """Background task: forget all user cooldowns every `interval` seconds"""
    while True:
        await asyncio.sleep(interval)
        service.reset_user_cooldowns()


def setup_routes(app: web.Application) -> None:
    app.router.add_post("/color/cycle", color_cycle)
    app.router.add_get("/color/query", color_query)
