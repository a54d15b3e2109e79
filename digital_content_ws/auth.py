"""
Bearer-token authentication for /api routes.

Tokens are HS256 JWTs signed with the configured jwt_key.
"""
import logging
from typing import Any, Dict

import jwt
from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)


def get_bearer_token(authorization: str) -> str:
    """
    Extract the token from an Authorization header value.

    Raises:
        ValueError: unless the header is exactly "Bearer <token>"
    """
    components = " ".join((authorization or "").split()).split(" ")

    # two components, the first "Bearer" and the second a non-empty token
    if len(components) != 2 or components[0] != "Bearer" or components[1] == "":
        raise ValueError(f"invalid Authorization header: [{authorization}]")

    token = components[1]

    if token == "undefined":
        raise ValueError("bearer token is undefined")

    return token


def validate_token(token: str, key: str) -> Dict[str, Any]:
    """Verify signature and expiry. Returns the decoded claims."""
    if not key:
        raise ValueError("no signing key configured")

    try:
        return jwt.decode(token, key, algorithms=["HS256"], options={"verify_exp": True})
    except jwt.ExpiredSignatureError:
        raise ValueError("token has expired")
    except jwt.PyJWTError as exc:
        raise ValueError(f"token validation failed: {exc}") from exc


def authenticate(request: Request) -> Dict[str, Any]:
    """FastAPI dependency: 401 unless the request carries a valid bearer token."""
    svc = request.app.state.service

    try:
        token = get_bearer_token(request.headers.get("Authorization", ""))
    except ValueError as e:
        logger.warning(f"Authentication failed: [{e}]")
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        claims = validate_token(token, svc.config.jwt_key)
    except ValueError as e:
        logger.warning(f"JWT signature is invalid: {e}")
        raise HTTPException(status_code=401, detail="Unauthorized")

    request.state.claims = claims
    return claims
