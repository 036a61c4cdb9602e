"""Base Pydantic response models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BaseResponse(BaseModel):
    """Base response model with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
    )


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: dict[str, Any] = Field(description="Error details")

    @classmethod
    def create(
        cls,
        code: str,
        message: str,
        correlation_id: str | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> "ErrorResponse":
        """Create a standardized error response.

        Args:
            code: Machine-readable error code, e.g. ``quota_exceeded``.
            message: Message safe to show the user.
            correlation_id: Request correlation ID.
            details: Additional error details.

        Returns:
            ErrorResponse instance.
        """
        error: dict[str, Any] = {
            "code": code,
            "message": message,
            "correlation_id": correlation_id,
        }
        if details:
            error["details"] = details
        return cls(error=error)
