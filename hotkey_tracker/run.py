#!/usr/bin/env python3
"""Run the Hotkey Tracker application"""
import uvicorn

from hotkey_tracker.core.config import settings


def main() -> None:
    uvicorn.run(
        "hotkey_tracker.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
