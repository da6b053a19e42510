"""Entry point for running NeuroXO via ``python -m neuroxo``."""

from __future__ import annotations

import logging
import os

import uvicorn


def main() -> None:
    """Start the FastAPI-powered NeuroXO web server."""

    logging.basicConfig(
        level=os.environ.get("NEUROXO_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.environ.get("NEUROXO_HOST", "0.0.0.0")
    port = int(os.environ.get("NEUROXO_PORT", "8000"))
    uvicorn.run("neuroxo.ui:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
