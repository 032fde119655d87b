"""Entrypoint: run the FleetMatch server."""

import uvicorn

from fleetmatch.api.app import create_app
from fleetmatch.config.settings import Settings


def main() -> None:
    settings = Settings()
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
