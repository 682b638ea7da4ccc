"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from graphitizer_gateway import __version__
from graphitizer_gateway.api.dependencies import app_state
from graphitizer_gateway.api.routes import router as api_router
from graphitizer_gateway.core.cache import SnapshotCache
from graphitizer_gateway.core.config import Settings, setup_logging
from graphitizer_gateway.core.models import HealthResponse
from graphitizer_gateway.protocol.confirmation import ConfirmationEngine
from graphitizer_gateway.protocol.handler import ProtocolHandler
from graphitizer_gateway.protocol.registry import DEFAULT_REGISTRY
from graphitizer_gateway.protocol.telemetry import TelemetryLoop
from graphitizer_gateway.serial.connection import SerialConnection
from graphitizer_gateway.serial.gate import ChannelGate
from graphitizer_gateway.storage.influx import InfluxSink

logger = logging.getLogger(__name__)

USAGE = [
    "/set?param=V00&value=255",
    "/set?param=T01&value=80",
    "/set?param=PUMP_OFF",
    "/getall",
]


def build_gate(settings: Settings) -> ChannelGate:
    """Create the channel gate; each (re)connection gets a fresh SerialConnection."""

    def factory() -> SerialConnection:
        return SerialConnection(
            port=settings.serial_port,
            baudrate=settings.serial_baud,
            timeout=settings.read_timeout,
        )

    return ChannelGate(factory)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown.

    Failing to reach the database or to open the serial port aborts startup.
    """
    settings = app_state.settings or Settings()
    app_state.settings = settings

    setup_logging(settings.log_level)
    logger.info(f"Starting Graphitizer Gateway v{__version__}")

    # Initialize components
    app_state.cache = SnapshotCache()
    app_state.sink = InfluxSink(
        host=settings.influx_host,
        port=settings.influx_port,
        database=settings.influx_database,
        measurement=settings.influx_measurement,
        retention_policy=settings.influx_retention_policy,
        username=settings.influx_username,
        password=settings.influx_password,
    )
    app_state.gate = build_gate(settings)

    await app_state.sink.connect()
    await app_state.gate.open()
    logger.info(f"Connected to {settings.serial_port}")

    engine = ConfirmationEngine(
        gate=app_state.gate,
        registry=DEFAULT_REGISTRY,
        settle_delay=settings.settle_delay,
        level_poll_delay=settings.level_poll_delay,
        toggle_poll_delay=settings.toggle_poll_delay,
        sample_retry_delay=settings.sample_retry_delay,
        timeout=settings.confirm_timeout_or_none,
        max_polls=settings.confirm_max_polls_or_none,
    )
    app_state.handler = ProtocolHandler(
        gate=app_state.gate,
        engine=engine,
        cache=app_state.cache,
        sink=app_state.sink,
    )
    app_state.telemetry = TelemetryLoop(
        gate=app_state.gate,
        sink=app_state.sink,
        cache=app_state.cache,
        interval=settings.telemetry_interval,
    )

    await app_state.telemetry.start()

    yield

    # Shutdown
    logger.info("Shutting down...")
    if app_state.telemetry is not None:
        await app_state.telemetry.stop()
    if app_state.gate is not None:
        await app_state.gate.close()
    if app_state.sink is not None:
        await app_state.sink.close()


app = FastAPI(
    title="Graphitizer Gateway",
    description="HTTP API and telemetry middleware for the graphitizer microcontroller",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint with usage examples."""
    return {
        "name": "Graphitizer Gateway",
        "version": __version__,
        "status": "running",
        "usage": USAGE,
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    handler = app_state.handler
    cache = app_state.cache
    telemetry = app_state.telemetry

    if handler is None or cache is None:
        return HealthResponse(
            status="unhealthy",
            device_connected=False,
            telemetry_running=False,
            fields_count=0,
            last_update=None,
        )

    connected = handler.connected
    status = "healthy" if connected and cache.count > 0 else ("degraded" if connected else "unhealthy")

    return HealthResponse(
        status=status,
        device_connected=connected,
        telemetry_running=telemetry is not None and telemetry.running,
        fields_count=cache.count,
        last_update=cache.last_update,
    )


def main():
    """Run the application (for CLI entry point)."""
    import uvicorn

    settings = Settings()
    setup_logging(settings.log_level)
    app_state.settings = settings

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
