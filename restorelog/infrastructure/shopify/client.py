"""Thin async client for the Admin GraphQL API."""

from typing import Any

import httpx

from ...config import settings
from ...domain.exceptions import TransportError
from ...logging_config import get_logger

logger = get_logger(__name__)


class AdminApiClient:
    """Posts GraphQL documents to the Admin API and returns their ``data``.

    Every failure below the GraphQL layer (connection errors, non-2xx
    responses, undecodable bodies, top-level ``errors``) is raised as
    ``TransportError``. User errors inside ``data`` are left for the caller.
    """

    def __init__(
        self,
        endpoint: str,
        access_token: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint
        self._http = httpx.AsyncClient(
            headers={
                "X-Shopify-Access-Token": access_token,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @classmethod
    def from_settings(cls) -> "AdminApiClient":
        return cls(
            settings.admin_graphql_url,
            settings.admin_access_token,
            timeout=settings.admin_api_timeout_seconds,
        )

    async def graphql(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            response = await self._http.post(self.endpoint, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Admin API returned an error status",
                status_code=e.response.status_code,
            )
            raise TransportError(
                f"Admin API responded with {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("Admin API request failed", error=str(e))
            raise TransportError(f"Admin API request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError("Admin API returned invalid JSON") from e

        if not isinstance(body, dict):
            raise TransportError("Admin API returned an unexpected payload")

        if body.get("errors"):
            messages = [
                err.get("message", str(err)) if isinstance(err, dict) else str(err)
                for err in body["errors"]
            ]
            logger.warning("Admin API reported GraphQL errors", errors=messages)
            raise TransportError("; ".join(messages))

        return body.get("data") or {}

    async def aclose(self) -> None:
        await self._http.aclose()
