"""Run the Everdice API server: ``python -m everdice``."""

from __future__ import annotations

import uvicorn

from everdice.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "everdice.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
