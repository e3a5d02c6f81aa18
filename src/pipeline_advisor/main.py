"""Entrypoint: run the Pipeline Advisor server."""

import uvicorn

from pipeline_advisor.api.app import create_app
from pipeline_advisor.config.settings import Settings


def main() -> None:
    settings = Settings()
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
