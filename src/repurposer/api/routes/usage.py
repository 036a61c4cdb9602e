"""Token usage API routes."""

from fastapi import APIRouter, Depends

from ..dependencies import ServiceContainer, get_container, require_user
from ..models.usage import UsageResponse

router = APIRouter(prefix="/api/v1/usage", tags=["Usage"])


@router.get("", response_model=UsageResponse, summary="Token Balance")
async def get_usage(
    user_id: str = Depends(require_user),
    container: ServiceContainer = Depends(get_container),
) -> UsageResponse:
    """The caller's plan allowance, usage and remaining tokens."""
    balance = await container.ledger.balance(user_id)
    return UsageResponse(
        user_id=balance.user_id,
        plan_name=balance.plan_name,
        allowance=balance.allowance,
        used=balance.used,
        remaining=balance.remaining,
    )
