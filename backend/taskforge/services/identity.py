"""Auth0 Management API client for reading and updating user profiles."""

import logging
from typing import Any
from urllib.parse import quote

import httpx
from fastapi import HTTPException, Request, status

from taskforge.config import Settings
from taskforge.errors import DependencyError, NotFoundError

logger = logging.getLogger(__name__)


class IdentityDirectory:
    """Thin wrapper over the Auth0 `/api/v2/users` endpoints."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "IdentityDirectory":
        headers = {}
        if settings.auth0_management_token:
            headers["Authorization"] = f"Bearer {settings.auth0_management_token}"
        client = httpx.AsyncClient(
            base_url=f"https://{settings.auth0_domain}/api/v2",
            headers=headers,
            timeout=10.0,
        )
        return cls(client)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, user_id: str, **kwargs: Any) -> dict[str, Any]:
        path = f"/users/{quote(user_id, safe='')}"
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Identity directory {method} {path} failed: {e!r}")
            raise DependencyError("identity directory", str(e)) from e

        if response.status_code == 404:
            raise NotFoundError("User")
        if response.is_error:
            logger.error(
                f"Identity directory {method} {path} returned {response.status_code}: {response.text}"
            )
            raise DependencyError(
                "identity directory", f"{method} {path} returned {response.status_code}"
            )
        return response.json()

    async def get_user(self, user_id: str) -> dict[str, Any]:
        """Fetch the profile of the user with the given subject id."""
        return await self._request("GET", user_id)

    async def set_user_picture(self, user_id: str, picture_url: str) -> dict[str, Any]:
        """Point the user's profile picture at picture_url."""
        logger.info(f"Setting profile picture for user {user_id}")
        return await self._request("PATCH", user_id, json={"picture": picture_url})


def get_identity_directory(request: Request) -> IdentityDirectory:
    directory = getattr(request.app.state, "identity_directory", None)
    if directory is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Identity directory is not configured",
        )
    return directory
