"""
Run the API with uvicorn: ``python -m app``.

Host and port come from the environment (``HOST``, ``PORT``).
"""

import uvicorn

from app.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
