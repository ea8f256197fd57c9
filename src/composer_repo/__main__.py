"""Entry point: ``python -m composer_repo``."""

from __future__ import annotations

import uvicorn

from composer_repo.config import Settings
from composer_repo.logging_config import configure_logging
from composer_repo.server import create_app


def main() -> None:
    settings = Settings()
    configure_logging(settings.logging)
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
