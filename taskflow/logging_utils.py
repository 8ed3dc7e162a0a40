import logging
import sys

# Our request middleware writes the access line; uvicorn's would duplicate it
_QUIET_LOGGERS = ("uvicorn.access",)


def setup_logging(level: str = "INFO") -> None:
    """Configure simple, consistent logging for the app.

    Format: time level logger message k=v ...
    """
    level = (level or "INFO").upper()
    if level not in logging.getLevelNamesMapping():
        level = "INFO"

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root = logging.getLogger()
    if root.handlers:
        # Respect existing (e.g., uvicorn, pytest) but align level
        root.setLevel(level)
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root.addHandler(handler)
    root.setLevel(level)
