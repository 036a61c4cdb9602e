"""Usage Pydantic models."""

from pydantic import BaseModel, Field


class UsageResponse(BaseModel):
    """A user's token balance."""

    user_id: str
    plan_name: str = Field(description="Plan that sets the allowance")
    allowance: int = Field(description="Monthly token allowance")
    used: int = Field(description="Tokens recorded so far")
    remaining: int = Field(description="Allowance minus usage; negative when over")
