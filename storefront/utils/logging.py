# storefront/utils/logging.py
import logging
import sys

import structlog

from storefront.utils.settings import LOG_LEVEL, LOG_JSON

_configured = False


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Route structlog through stdlib logging; JSON lines in production."""
    global _configured

    level_name = (level or LOG_LEVEL).upper()
    use_json = LOG_JSON if json_output is None else json_output

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # sqlalchemy echo is too noisy at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str):
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)
