"""
Logging configuration.
Uvicorn and application logger levels; upstream AI/KIE failures use logger.exception.
"""
import logging
import sys


def setup_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
) -> None:
    if format_string is None:
        format_string = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=format_string,
        stream=sys.stdout,
        force=True,
    )
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
    logging.getLogger("crackcheck").setLevel(level)
    # httpx logs every request at INFO; KIE polling would flood the log
    logging.getLogger("httpx").setLevel(logging.WARNING)
