"""
Dispatch-related request and response schemas.

These Pydantic models define the API contract and provide
automatic validation and documentation.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class DispatchRequest(BaseModel):
    """Request body for dispatching one command."""

    driver: Optional[str] = Field(
        default=None,
        description="Driver to switch to before dispatching (default: active driver)",
        examples=["smtp"],
    )
    destination: Optional[str] = Field(
        default=None,
        description="Recipient address or destination",
        examples=["ops@example.com"],
    )
    content: Optional[str] = Field(
        default=None,
        description="Message body or file content; base64 for binary files",
    )
    encoding: Optional[Literal["base64"]] = Field(
        default=None,
        description="Set to 'base64' when content carries binary data",
    )
    subject: Optional[str] = Field(default=None, examples=["Weekly report"])
    template_ref: Optional[str] = Field(
        default=None,
        description="Template reference passed through to the driver",
    )
    template_data: Optional[dict[str, Any]] = Field(default=None)
    name: Optional[str] = Field(
        default=None,
        description="File or object name",
        examples=["avatar.png"],
    )
    prefix: Optional[str] = Field(
        default=None,
        description="String prepended to the name",
        examples=["user_"],
    )
    accept: Optional[list[str]] = Field(
        default=None,
        description="Accepted file types",
        examples=[["png", "jpg"]],
    )
    file_type: Optional[str] = Field(default=None)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "driver": "uploads",
                    "name": "avatar.png",
                    "prefix": "user_",
                    "accept": ["png", "jpg"],
                    "content": "...",
                }
            ]
        }
    }


class DispatchResponse(BaseModel):
    """Result of a successful dispatch."""

    status: str = Field(default="success")
    location: str = Field(..., description="Where the payload ended up")
    driver: str = Field(..., description="Driver that handled the command")


class ActiveDriverRequest(BaseModel):
    """Request body for switching the active driver."""

    name: str = Field(..., min_length=1, examples=["smtp"])


class DriverInfo(BaseModel):
    name: str
    kind: str
    resolved: bool


class DriverListResponse(BaseModel):
    """Registered drivers and the current selection."""

    drivers: list[DriverInfo]
    active: str
    default: str
