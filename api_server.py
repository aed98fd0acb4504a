#!/usr/bin/env python
"""Run the pipeline status API."""

import os

import uvicorn


def main():
    """Run the FastAPI application."""
    uvicorn.run(
        "snap_reindexer.api.app:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        log_level="info"
    )


if __name__ == "__main__":
    main()
