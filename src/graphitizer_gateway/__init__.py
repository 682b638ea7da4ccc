"""Graphitizer Gateway: HTTP and telemetry middleware for the graphitizer microcontroller."""

__version__ = "0.1.0"
