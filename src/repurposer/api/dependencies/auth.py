"""Caller identity dependency.

Authentication happens upstream; this service trusts the user ID that the
gateway forwards in the ``X-User-ID`` header.
"""

from fastapi import Header, HTTPException, status

from ...logging.config import bind_context

USER_ID_HEADER = "X-User-ID"


async def require_user(x_user_id: str | None = Header(default=None)) -> str:
    """FastAPI dependency returning the calling user's ID.

    Raises:
        HTTPException 401 if the header is missing or blank.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {USER_ID_HEADER} header",
        )
    user_id = x_user_id.strip()
    bind_context(user_id=user_id)
    return user_id
