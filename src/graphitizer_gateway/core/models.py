"""API request/response models for the graphitizer gateway."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SnapshotResponse(BaseModel):
    """Response model for GET /getall."""

    timestamp: datetime = Field(default_factory=datetime.now, description="Time the snapshot was read")
    fields: dict[str, int] = Field(..., description="Device fields keyed by name, in wire order")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "timestamp": "2026-01-13T10:30:00",
                "fields": {"V00": 255, "V01": 0, "T01": 80, "PUMP": 1},
            }
        }
    )


class SetResponse(BaseModel):
    """Response model for a confirmed GET /set."""

    success: bool = Field(True, description="Operation success status")
    param: str = Field(..., description="Parameter that was written")
    value: int | None = Field(None, description="Value written, None for toggles")
    timestamp: datetime = Field(default_factory=datetime.now, description="Operation timestamp")
    fields: dict[str, int] = Field(..., description="Snapshot that confirmed the write")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "param": "V00",
                "value": 255,
                "timestamp": "2026-01-13T10:30:00",
                "fields": {"V00": 255, "V01": 0, "T01": 80, "PUMP": 1},
            }
        }
    )


class ErrorResponse(BaseModel):
    """Response model for errors."""

    success: bool = Field(False, description="Operation success status")
    error: str = Field(..., description="Error message")
    detail: str | None = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=datetime.now, description="Error timestamp")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "error": "incorrect param",
                "detail": "Unknown parameter: 'V99'",
                "timestamp": "2026-01-13T10:30:00",
            }
        }
    )


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status (healthy/degraded/unhealthy)")
    device_connected: bool = Field(..., description="Whether the serial channel is open")
    telemetry_running: bool = Field(..., description="Whether the telemetry loop is active")
    fields_count: int = Field(..., ge=0, description="Number of fields in the latest snapshot")
    last_update: datetime | None = Field(None, description="Last successful snapshot timestamp")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "device_connected": True,
                "telemetry_running": True,
                "fields_count": 28,
                "last_update": "2026-01-13T10:30:00",
            }
        }
    )
