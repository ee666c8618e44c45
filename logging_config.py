import logging
import sys

from loguru import logger


def configure_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.configure(
        handlers=[  # type: ignore
            {
                "sink": sys.stderr,
                "level": level.upper(),
                "format": (
                    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                    "<level>{level}</level> | "
                    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                    "<level>{message}</level>"
                ),
                "colorize": True,
            },
        ]
    )
    _suppress_third_party_logs()


def _suppress_third_party_logs() -> None:
    for logger_name, level in {
        "aiosqlite": "WARNING",
        "asyncio": "WARNING",
        "urllib3": "WARNING",
        "httpx": "WARNING",
        "PIL": "WARNING",
    }.items():
        logging.getLogger(logger_name).setLevel(level)
