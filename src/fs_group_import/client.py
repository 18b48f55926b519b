"""HTTP client for the create-group endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Suppress noisy per-request httpx/httpcore logging
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

REQUEST_ID_HEADER = "X-Request-ID"


class GroupApiError(Exception):
    """Non-success response from the group API."""

    def __init__(self, message: str, status_code: int | None = None, response: Any = None):
        full_message = message
        if response:
            full_message = f"{message} - Response: {str(response)[:500]}"
        super().__init__(full_message)
        self.status_code = status_code
        self.response = response


@dataclass(frozen=True)
class CreateGroupResult:
    status_code: int
    group_id: str | None = None
    request_id: str | None = None


class GroupApiClient:
    """Client for creating groups on the access-control API.

    The underlying ``httpx.Client`` is shared by all dispatcher workers.
    """

    def __init__(
        self,
        base_url: str,
        auth_token: str,
        groups_path: str = "/groups",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.groups_path = "/" + groups_path.lstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {auth_token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> GroupApiClient:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def create_group(self, payload: dict[str, Any]) -> CreateGroupResult:
        """POST one group.

        Raises:
            GroupApiError: on any non-2xx response
            httpx.RequestError: on transport failures
        """
        logger.debug("POST %s%s name=%s", self.base_url, self.groups_path, payload.get("name"))
        response = self._client.post(self.groups_path, json=payload)

        if response.status_code == 401:
            raise GroupApiError("Unauthorized - check your API token", 401)
        if response.status_code == 403:
            raise GroupApiError("Forbidden - insufficient permissions", 403)
        if response.status_code >= 300:
            raise GroupApiError(
                f"API error: {response.status_code}", response.status_code, response.text
            )

        body = _json_body(response)
        request_id = response.headers.get(REQUEST_ID_HEADER) or body.get("requestId")
        group_id = body.get("id")
        return CreateGroupResult(
            status_code=response.status_code,
            group_id=str(group_id) if group_id is not None else None,
            request_id=str(request_id) if request_id is not None else None,
        )


def _json_body(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
