"""
Bearer-token authentication via Supabase Auth.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Header

from .supabase_client import get_supabase_client

logger = logging.getLogger(__name__)


async def get_current_user(authorization: Optional[str] = Header(None)) -> dict:
    """
    Resolve the caller from the Authorization header.

    Returns:
        dict: id, email, role ("student" | "tutor" | "admin") and full_name

    Raises:
        HTTPException: 401 for a missing or invalid token, 404 if no profile row exists
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")

    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    token = authorization[len("Bearer "):]

    try:
        supabase = get_supabase_client()

        user_response = supabase.auth.get_user(token)
        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        user = user_response.user

        profile_response = supabase.table('profiles').select('*').eq('id', user.id).single().execute()
        if not profile_response.data:
            raise HTTPException(status_code=404, detail="User profile not found")

        profile = profile_response.data
        return {
            "id": user.id,
            "email": user.email,
            "role": profile.get("role", "student"),
            "full_name": profile.get("full_name"),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.warning(f"⚠️ [Auth] Token validation failed: {e}")
        raise HTTPException(status_code=401, detail="Could not validate credentials")


def require_role(*roles: str):
    """Dependency factory: the caller must have one of `roles`."""

    async def checker(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in roles:
            raise HTTPException(status_code=403, detail=f"{' or '.join(r.capitalize() for r in roles)} access required")
        return user

    return checker
