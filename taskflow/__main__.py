"""Run the API with uvicorn: ``python -m taskflow``."""

import uvicorn

from .config import settings


def main() -> None:
    uvicorn.run(
        "taskflow.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
