import logging
from time import time
from typing import Optional
from aio_statsd import TelegrafStatsdClient
from aiohttp import web
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
)
import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from social.graze.passport.app.config import (
    DatabaseAppKey,
    DatabaseSessionMakerAppKey,
    PassportStoreAppKey,
    Settings,
    SettingsAppKey,
    TelegrafStatsdClientAppKey,
)
from social.graze.passport.app.handlers.internal import (
    handle_internal_alive,
    handle_internal_ready,
)
from social.graze.passport.app.proxy import proxy_headers_middleware
from social.graze.passport.hashing import ScryptPasswordHasher
from social.graze.passport.store import PassportStore

logger = logging.getLogger(__name__)


def build_passport_store(
    settings: Settings,
    database_session_maker: async_sessionmaker[AsyncSession],
    statsd_client: Optional[TelegrafStatsdClient] = None,
) -> PassportStore:
    password_hasher = None
    if settings.hash_passwords:
        password_hasher = ScryptPasswordHasher(n=settings.scrypt_n)

    return PassportStore(
        database_session_maker,
        password_hasher=password_hasher,
        statsd_client=statsd_client,
        access_token_bytes=settings.access_token_bytes,
    )


async def database_resources(app):
    logger.info("Starting up")
    settings: Settings = app[SettingsAppKey]

    engine = create_async_engine(str(settings.pg_dsn))
    app[DatabaseAppKey] = engine
    database_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    app[DatabaseSessionMakerAppKey] = database_session

    statsd_client = TelegrafStatsdClient(
        host=settings.statsd_host, port=settings.statsd_port, debug=settings.debug
    )
    await statsd_client.connect()
    app[TelegrafStatsdClientAppKey] = statsd_client

    app[PassportStoreAppKey] = build_passport_store(
        settings, database_session, statsd_client
    )

    logger.info("Startup complete")

    yield

    logger.info("Shutting down")

    await app[DatabaseAppKey].dispose()
    await app[TelegrafStatsdClientAppKey].close()


@web.middleware
async def sentry_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except Exception as e:
        sentry_sdk.capture_exception(e)
        raise e


@web.middleware
async def statsd_middleware(request: web.Request, handler):
    statsd_client = request.app[TelegrafStatsdClientAppKey]
    request_method: str = request.method
    request_path = request.path

    start_time: float = time()
    response_status_code = 0

    try:
        response = await handler(request)
        response_status_code = response.status
        return response
    except Exception as e:
        statsd_client.increment(
            "passport.server.request.exception",
            1,
            tag_dict={
                "exception": type(e).__name__,
                "path": request_path,
                "method": request_method,
            },
        )
        raise e
    finally:
        statsd_client.timer(
            "passport.server.request.time",
            time() - start_time,
            tag_dict={"path": request_path, "method": request_method},
        )
        statsd_client.increment(
            "passport.server.request.count",
            1,
            tag_dict={
                "path": request_path,
                "method": request_method,
                "status": response_status_code,
            },
        )


async def start_web_server(settings: Optional[Settings] = None):

    if settings is None:
        settings = Settings()  # type: ignore
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            send_default_pii=True,
            integrations=[AioHttpIntegration()],
        )
    app = web.Application(
        middlewares=[statsd_middleware, sentry_middleware, proxy_headers_middleware]
    )

    app[SettingsAppKey] = settings

    app.add_routes(
        [
            web.get("/internal/alive", handle_internal_alive),
            web.get("/internal/ready", handle_internal_ready),
        ]
    )

    app.cleanup_ctx.append(database_resources)

    return app
