"""Session lifecycle and telemetry ingestion service for hotkey monitoring."""

__version__ = "1.0.0"
