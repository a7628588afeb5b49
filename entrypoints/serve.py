#!/usr/bin/env python3
"""Serve the pipeline HTTP API with the frame-ingest log filter."""

import os

import uvicorn

from lumenta.api.logging_config import configure_uvicorn_logging


def main():
    log_level = os.getenv("LOG_LEVEL", "info").lower()
    uvicorn.run(
        "lumenta.api.server:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_config=configure_uvicorn_logging(log_level),
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
