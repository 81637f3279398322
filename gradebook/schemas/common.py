"""Common schema utilities and base classes."""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, PlainSerializer


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# Marks stay exact Decimals in Python and go out as plain JSON numbers
Marks = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Percentage = Annotated[
    Decimal,
    PlainSerializer(lambda v: round(float(v), 2), return_type=float, when_used="json"),
]


class ErrorDetail(BaseSchema):
    """Error detail structure."""

    code: str
    message: str
    details: dict[str, Any] = {}


class ErrorResponse(BaseSchema):
    """Standard error response."""

    success: bool = False
    error: ErrorDetail

