"""Run the service with uvicorn: ``python -m pollstats``."""

import uvicorn

from pollstats.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "pollstats.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
