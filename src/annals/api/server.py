"""
ASGI Entry Point for the Annals API.

Loads `.env` before building the application so that settings read at import
time see the configured values.

Usage
-----
    $ python -m annals.api.server
    $ uvicorn annals.api.server:app --reload
"""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(".env"))

from annals.api.app import create_app  # noqa: E402

app = create_app()


def main(host: str = "127.0.0.1", port: int = 8000, reload: bool = False) -> None:
    """Run the API server."""
    uvicorn.run("annals.api.server:app", host=host, port=port, reload=reload, log_level="info")


if __name__ == "__main__":
    main()
