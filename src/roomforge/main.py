"""ASGI entry point: ``uvicorn roomforge.main:app``."""

import uvicorn

from roomforge.api.app import create_app

app = create_app()


def run() -> None:
    uvicorn.run("roomforge.main:app", host="0.0.0.0", port=8000)
