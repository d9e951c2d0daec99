import logging
from aiohttp import web
from sqlalchemy import text
import sentry_sdk

from social.graze.passport.app.config import DatabaseSessionMakerAppKey

logger = logging.getLogger(__name__)


async def handle_internal_alive(request: web.Request):
    return web.Response(text="Ok")


async def handle_internal_ready(request: web.Request):
    database_session_maker = request.app[DatabaseSessionMakerAppKey]
    try:
        async with database_session_maker() as database_session:
            await database_session.execute(text("SELECT 1"))
    except Exception as e:
        sentry_sdk.capture_exception(e)
        logger.exception("handle_internal_ready: Exception")
        return web.Response(status=503, text="Not Ready")
    return web.Response(text="Ok")
