"""API route handlers."""

from fastapi import APIRouter, Depends, HTTPException, Query

from graphitizer_gateway.api.dependencies import get_handler
from graphitizer_gateway.core.exceptions import ValidationError
from graphitizer_gateway.core.models import ErrorResponse, SetResponse, SnapshotResponse
from graphitizer_gateway.protocol.confirmation import Confirmed
from graphitizer_gateway.protocol.handler import ProtocolHandler

router = APIRouter()


@router.get(
    "/set",
    response_model=SetResponse,
    responses={
        400: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def set_parameter(
    param: str = Query(..., description="Parameter name, e.g. V00, T01, PUMP_ON"),
    value: str | None = Query(None, description="Decimal value; omit for PUMP_ON/PUMP_OFF"),
    handler: ProtocolHandler = Depends(get_handler),
):
    """Send a command to the device and wait for it to take effect.

    A closed channel is re-acquired within the confirmation budget; if it
    stays down the request ends as a 504.
    """
    registry = handler.registry
    if not registry.is_known_parameter(param):
        raise HTTPException(status_code=400, detail=f"error: incorrect param! {param!r}")

    try:
        request = registry.validate(param, value)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"error: incorrect value! {e}") from None

    outcome = await handler.set_parameter(param, value)

    if not isinstance(outcome, Confirmed):
        raise HTTPException(status_code=504, detail=f"Device did not confirm {param} in time")

    return SetResponse(param=param, value=request.value, fields=outcome.frame.to_dict())


@router.get(
    "/getall",
    response_model=SnapshotResponse,
    responses={
        504: {"model": ErrorResponse},
    },
)
async def get_all(
    handler: ProtocolHandler = Depends(get_handler),
):
    """Read a fresh snapshot of every device field."""
    frame = await handler.get_snapshot()
    if frame is None:
        raise HTTPException(status_code=504, detail="No valid snapshot received in time")

    return SnapshotResponse(fields=frame.to_dict())
