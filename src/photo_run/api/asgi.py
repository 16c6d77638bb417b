"""ASGI entrypoint for the Photo Run API."""

import os

import uvicorn

from photo_run.api.app import create_app
from photo_run.containers import build_container

app = create_app(build_container())


def main() -> None:
    """Serve the API with uvicorn; HOST and PORT come from the environment."""
    uvicorn.run(
        app,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        log_config=None,
    )
