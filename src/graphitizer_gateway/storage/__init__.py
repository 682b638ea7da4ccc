"""Time-series persistence."""

from graphitizer_gateway.storage.influx import InfluxSink

__all__ = ["InfluxSink"]
