import uvicorn

from .app import create_app
from .config import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings)
    # SIGINT/SIGTERM run the lifespan shutdown; a failed startup exits non-zero.
    uvicorn.run(app, host=settings.server_host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
