"""
Driver and dispatch endpoints.

- GET /api/v1/drivers - List registered drivers
- PUT /api/v1/drivers/active - Switch the active driver
- POST /api/v1/dispatch - Dispatch one command
"""

import base64
import binascii
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_driver_manager
from api.schemas.dispatch import (
    ActiveDriverRequest,
    DispatchRequest,
    DispatchResponse,
    DriverInfo,
    DriverListResponse,
)
from core.errors import (
    AlreadyExecutedError,
    DispatchError,
    DriverExecutionError,
    InvalidArgumentError,
    MissingConfigError,
    UnknownDriverError,
    UnsupportedTypeError,
)
from core.logging import get_logger
from manager.manager import DriverManager


logger = get_logger(__name__)
router = APIRouter(prefix="/api/v1", tags=["Dispatch"])


ERROR_STATUS: dict[type[DispatchError], int] = {
    UnknownDriverError: 404,
    AlreadyExecutedError: 409,
    UnsupportedTypeError: 415,
    InvalidArgumentError: 422,
    MissingConfigError: 500,
    DriverExecutionError: 502,
}


def to_http_error(exc: DispatchError) -> HTTPException:
    """Map a dispatch error to an HTTP error response."""
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def decode_content(content: str, encoding: Optional[str]) -> Union[str, bytes]:
    """Return request content as text, or as bytes when base64-encoded."""
    if encoding != "base64":
        return content
    try:
        return base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidArgumentError(f"Content is not valid base64: {e}") from e


@router.get("/drivers", response_model=DriverListResponse)
async def list_drivers(
    manager: DriverManager = Depends(get_driver_manager),
) -> DriverListResponse:
    """List every registered driver with its kind and resolution state."""
    registry = manager.registry
    return DriverListResponse(
        drivers=[
            DriverInfo(
                name=name,
                kind=registry.config(name).kind.value,
                resolved=registry.is_resolved(name),
            )
            for name in registry.names()
        ],
        active=manager.active,
        default=manager.default,
    )


@router.put("/drivers/active")
async def set_active_driver(
    request: ActiveDriverRequest,
    manager: DriverManager = Depends(get_driver_manager),
) -> dict:
    """
    Switch the active driver.

    The driver is resolved first, so configuration errors are reported
    here rather than on the next dispatch.
    """
    logger.info("Switching active driver", driver=request.name)

    try:
        manager.driver(request.name)
    except DispatchError as e:
        raise to_http_error(e)

    return {
        "active": manager.active,
        "message": f"Active driver set to '{request.name}'",
    }


@router.post("/dispatch", response_model=DispatchResponse)
async def dispatch(
    request: DispatchRequest,
    manager: DriverManager = Depends(get_driver_manager),
) -> DispatchResponse:
    """
    Dispatch one command.

    With ``driver`` set this behaves like ``manager.driver(name)`` and
    switches the active driver; otherwise the active driver is used.
    """
    try:
        builder = manager.driver(request.driver) if request.driver else manager.command()

        if request.destination is not None:
            builder.to(request.destination)
        if request.subject is not None:
            builder.subject(request.subject)
        if request.content is not None:
            builder.content(decode_content(request.content, request.encoding))
        if request.template_ref is not None:
            builder.template(request.template_ref, request.template_data)
        elif request.template_data is not None:
            raise InvalidArgumentError("template_data needs a template_ref")
        if request.accept is not None:
            builder.accept(*request.accept)
        if request.prefix is not None:
            builder.prefix(request.prefix)
        if request.name is not None:
            builder.name(request.name)
        if request.file_type is not None:
            builder.file_type(request.file_type)

        result = await builder.dispatch()

    except DispatchError as e:
        logger.warning(
            "Dispatch request failed",
            driver=request.driver or manager.active,
            error=str(e),
        )
        raise to_http_error(e)

    return DispatchResponse(**result.to_dict())
