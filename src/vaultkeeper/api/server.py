"""
ASGI Entry Point for the Vaultkeeper API.

This module exposes the `app` object required by ASGI servers (Uvicorn).
It loads `.env` before building the application so that
`VAULTKEEPER_DATA_DIR` and `LOG_LEVEL` are in place when settings are read.

Usage
-----
    $ python -m vaultkeeper.api.server
    $ uvicorn vaultkeeper.api.server:app --reload
"""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(".env"))

from vaultkeeper.api.app import create_app  # noqa: E402
from vaultkeeper.core.settings import load_settings  # noqa: E402

app = create_app()


def main() -> None:
    """Run the API server locally for development."""
    current = load_settings()
    print(f"[Server] Data directory: {current.data_dir.resolve()}")
    uvicorn.run(
        "vaultkeeper.api.server:app",
        host="127.0.0.1",
        port=8000,
        reload=current.is_dev,
        log_level=current.log_level.lower(),
    )


if __name__ == "__main__":
    main()
