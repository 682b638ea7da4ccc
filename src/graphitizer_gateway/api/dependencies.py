"""FastAPI dependency injection for shared application state."""

from graphitizer_gateway.core.cache import SnapshotCache
from graphitizer_gateway.core.config import Settings
from graphitizer_gateway.protocol.handler import ProtocolHandler
from graphitizer_gateway.protocol.telemetry import TelemetryLoop
from graphitizer_gateway.serial.gate import ChannelGate
from graphitizer_gateway.storage.influx import InfluxSink


class AppState:
    """Holds shared application state instances.

    Created during app startup and accessed via FastAPI dependencies.
    """

    def __init__(self) -> None:
        self.settings: Settings | None = None
        self.gate: ChannelGate | None = None
        self.cache: SnapshotCache | None = None
        self.sink: InfluxSink | None = None
        self.handler: ProtocolHandler | None = None
        self.telemetry: TelemetryLoop | None = None


# Global app state singleton
app_state = AppState()


def get_handler() -> ProtocolHandler:
    """Get the protocol handler instance."""
    assert app_state.handler is not None, "App not initialized"
    return app_state.handler
