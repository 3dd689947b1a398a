import logging
import re
from datetime import datetime, timezone
from typing import Annotated, Any

import httpx
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, Response

from taskforge.config import settings
from taskforge.errors import StartupFailure
from taskforge.services.audit import Actor

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    sub: str
    exp: datetime


class CurrentUser(BaseModel):
    id: str
    token_payload: TokenPayload


PUBLIC_ROUTES = [
    r"^/$",
    r"^/health$",
    r"^/status$",
    r"^/docs$",
    r"^/redoc$",
    r"^/openapi\.json$",
]

_PUBLIC_ROUTE_PATTERNS = [re.compile(pattern) for pattern in PUBLIC_ROUTES]


def _is_public_route(path: str) -> bool:
    return any(pattern.match(path) for pattern in _PUBLIC_ROUTE_PATTERNS)


def _raise_unauthorized(detail: str) -> None:
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def fetch_jwks(url: str) -> dict[str, Any]:
    """Download the identity provider's published signing keys."""
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as e:
        raise StartupFailure(f"Could not fetch signing keys from {url}: {e}") from e
    jwks = response.json()
    logger.info(f"Loaded {len(jwks.get('keys', []))} signing key(s) from {url}")
    return jwks


def _verification_key(jwks: dict[str, Any] | None) -> Any:
    if settings.jwt_algorithm.startswith("HS"):
        if not settings.jwt_secret_key:
            _raise_unauthorized("Token validation is not configured")
        return settings.jwt_secret_key
    if not jwks:
        _raise_unauthorized("Signing keys are not available")
    return jwks


def decode_jwt_token(token: str, jwks: dict[str, Any] | None = None) -> TokenPayload:
    try:
        payload = jwt.decode(
            token,
            _verification_key(jwks),
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"verify_aud": settings.jwt_audience is not None},
        )

        sub = payload.get("sub")
        exp = payload.get("exp")

        if not all([sub, exp]):
            _raise_unauthorized("Invalid token: missing required claims")

        exp_datetime = datetime.fromtimestamp(exp, tz=timezone.utc)
        if exp_datetime < datetime.now(timezone.utc):
            _raise_unauthorized("Token has expired")

        return TokenPayload(sub=sub, exp=exp_datetime)

    except JWTError as e:
        logger.error(f"Error on token authentication: {e}")
        _raise_unauthorized(f"Invalid token: {e}")


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


class AuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if _is_public_route(request.url.path):
            return await call_next(request)

        token = _extract_bearer_token(request.headers.get("Authorization"))
        if not token:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Missing authentication credentials"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        try:
            jwks = getattr(request.app.state, "jwks", None)
            token_payload = decode_jwt_token(token, jwks)
            request.state.user = CurrentUser(id=token_payload.sub, token_payload=token_payload)
        except HTTPException as e:
            return JSONResponse(
                status_code=e.status_code,
                content={"detail": e.detail},
                headers=e.headers or {},
            )

        return await call_next(request)


def get_current_user(request: Request) -> CurrentUser:
    user = getattr(request.state, "user", None)
    if user is None:
        _raise_unauthorized("Not authenticated")
    return user


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_actor(request: Request, user: CurrentUser = Depends(get_current_user)) -> Actor:
    return Actor(user_id=user.id, ip=get_client_ip(request))


RequireAuth = Annotated[CurrentUser, Depends(get_current_user)]
RequireActor = Annotated[Actor, Depends(get_actor)]
