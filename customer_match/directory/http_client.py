"""
HTTP customer directory client.

Talks to the dashboard's REST API:

- ``GET  {base_url}/customers?search=<text>&limit=<n>``
  -> ``{"success": true, "data": {"customers": [...]}}``
- ``POST {base_url}/customers`` with a camelCase JSON body
  -> ``{"success": true, "data": {...created customer...}}``
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from customer_match.directory.base import (
    BaseDirectoryClient,
    DirectoryAuthenticationError,
    DirectoryConnectionError,
    DirectoryResponseError,
    DirectorySearchResponse,
)
from customer_match.directory.models import CandidateMatch, NewCustomerRequest

logger = logging.getLogger(__name__)


class HttpDirectoryClient(BaseDirectoryClient):
    """Directory client backed by a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the HTTP client.

        Args:
            base_url: Base URL of the API (without the ``/customers`` suffix)
            api_token: Bearer token; omitted from requests when None
            timeout: Request timeout in seconds
            transport: Custom transport (tests pass ``httpx.MockTransport``)
        """
        super().__init__(base_url, api_token, timeout)
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=self._build_headers(),
            timeout=timeout,
            transport=transport,
        )

    def get_source_name(self) -> str:
        return "http"

    def _build_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def search(self, query: str, limit: int = 50) -> DirectorySearchResponse:
        payload = await self._request(
            "GET", "/customers", params={"search": query, "limit": limit}
        )
        try:
            return DirectorySearchResponse.model_validate(payload)
        except ValidationError as e:
            raise DirectoryResponseError(f"Malformed search response: {e}") from e

    async def create_customer(self, request: NewCustomerRequest) -> CandidateMatch:
        body = request.model_dump(by_alias=True, exclude_none=True)
        payload = await self._request("POST", "/customers", json=body)

        if not payload.get("success", False):
            message = payload.get("message") or "Failed to create customer"
            raise DirectoryResponseError(message)

        try:
            return CandidateMatch.model_validate(payload.get("data") or {})
        except ValidationError as e:
            raise DirectoryResponseError(f"Malformed create response: {e}") from e

    async def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise DirectoryConnectionError(f"Directory request timed out: {e}") from e
        except httpx.TransportError as e:
            raise DirectoryConnectionError(f"Directory unreachable: {e}") from e

        if response.status_code in (401, 403):
            raise DirectoryAuthenticationError(
                f"Directory rejected credentials (HTTP {response.status_code})"
            )
        if response.status_code >= 400:
            logger.error(
                f"Directory {method} {url} failed: "
                f"HTTP {response.status_code}: {response.text[:200]}"
            )
            raise DirectoryResponseError(f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise DirectoryResponseError("Directory returned non-JSON body") from e

        if not isinstance(payload, dict):
            raise DirectoryResponseError("Directory returned unexpected JSON shape")
        return payload

    async def aclose(self) -> None:
        await self._client.aclose()
