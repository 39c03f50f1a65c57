"""
JWT Authentication Helper for Supabase

Verifies Supabase JWT tokens (signature, expiry, audience) and extracts user_id.
Without SUPABASE_JWT_SECRET every token is rejected.
"""
import jwt
from typing import Optional
from fastapi import Header
import logging

from repair_analyzer.config import get_settings
from repair_analyzer.errors import AuthError

logger = logging.getLogger("uvicorn.error")

JWT_ALGORITHMS = ["HS256"]


def extract_user_id_from_token(
    authorization: Optional[str] = None,
    secret: Optional[str] = None,
    audience: Optional[str] = None,
) -> str:
    """
    Verify Supabase JWT token and return its subject

    Args:
        authorization: Authorization header value (Bearer <token>)
        secret: JWT secret (default: SUPABASE_JWT_SECRET)
        audience: Expected audience (default: JWT_AUDIENCE, "authenticated")

    Returns:
        str: User ID from token

    Raises:
        AuthError: header missing, malformed, expired, wrong audience or bad signature
    """
    if not authorization:
        logger.warning("[Auth] No authorization header provided")
        raise AuthError("Authorization header is required")

    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token.strip():
        logger.warning("[Auth] Invalid authorization format (missing 'Bearer')")
        raise AuthError("Invalid authorization header")

    settings = get_settings()
    secret = secret or settings.supabase_jwt_secret
    audience = audience or settings.jwt_audience

    if not secret:
        logger.error("[Auth] SUPABASE_JWT_SECRET not set, rejecting token")
        raise AuthError("Token verification is not configured")

    try:
        payload = jwt.decode(
            token.strip(),
            secret,
            algorithms=JWT_ALGORITHMS,
            audience=audience,
            options={"require": ["exp", "sub"]}
        )
    except jwt.ExpiredSignatureError:
        logger.error("[Auth] Token has expired")
        raise AuthError("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.error(f"[Auth] Invalid token: {e}")
        raise AuthError("Invalid token")

    # Supabase JWT has 'sub' field with user ID
    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        logger.warning("[Auth] No 'sub' field in JWT payload")
        raise AuthError("Invalid token")

    logger.info(f"[Auth] Extracted user_id: {user_id[:8]}...")
    return user_id


async def get_current_user_id(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """
    FastAPI dependency returning user_id when a valid token is present

    Usage:
        @router.post("/endpoint")
        async def endpoint(user_id: Optional[str] = Depends(get_current_user_id)):
            ...

    Returns:
        str or None: User ID
    """
    if not authorization:
        return None
    try:
        return extract_user_id_from_token(authorization)
    except AuthError:
        return None


async def require_auth(authorization: Optional[str] = Header(None)) -> str:
    """
    FastAPI dependency that requires authentication
    Raises AuthError (401) if not authenticated

    Usage:
        @router.post("/protected-endpoint")
        async def endpoint(user_id: str = Depends(require_auth)):
            # user_id is guaranteed to be present
            ...

    Returns:
        str: User ID (guaranteed)
    """
    return extract_user_id_from_token(authorization)
