import os
from aiohttp import web
import logging
from logging.config import dictConfig
import json

from social.graze.passport.app.config import Settings


def configure_logging(settings: Settings):
    logging_config_file = os.getenv("LOGGING_CONFIG_FILE", "")

    if len(logging_config_file) > 0:
        with open(logging_config_file) as fl:
            dictConfig(json.load(fl))
        return

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        level=logging.DEBUG if settings.debug else logging.INFO,
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def invoke():
    settings = Settings()  # type: ignore
    configure_logging(settings)

    from social.graze.passport.app.server import start_web_server

    web.run_app(start_web_server(settings), port=settings.http_port)


if __name__ == "__main__":
    invoke()
