"""Async client for the remote Member Directory Service.

All persistence lives behind this API; the tracker only reads roster
snapshots and requests updates. Any transport failure or non-2xx response is
raised as DirectoryServiceError without parsing the response body.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from committee.models import Member, MemberDraft

logger = logging.getLogger(__name__)


class DirectoryServiceError(Exception):
    """A directory call failed (network error or non-2xx status)."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class MemberDirectoryClient:
    """Thin request/response wrapper over the directory's JSON endpoints."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout_seconds,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_settings(cls, settings: Any) -> "MemberDirectoryClient":
        return cls(
            base_url=settings.directory_api_url,
            timeout_seconds=settings.directory_http_timeout_seconds,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "MemberDirectoryClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.debug("directory.%s %s failed: %s", method, path, e)
            raise DirectoryServiceError(f"{method} {path} failed: {e}") from e

        logger.debug("directory.%s %s -> %d", method, path, resp.status_code)
        if resp.status_code >= 400:
            raise DirectoryServiceError(
                f"{method} {path} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        return resp

    async def list_members(self) -> list[Member]:
        """GET /members -> full roster snapshot."""
        resp = await self._request("GET", "/members")
        try:
            raw = resp.json()
            return [Member.model_validate(item) for item in raw]
        except ValueError as e:
            # Covers invalid JSON and pydantic ValidationError
            raise DirectoryServiceError(f"GET /members returned an invalid roster: {e}") from e
        except TypeError as e:
            raise DirectoryServiceError("GET /members did not return a list") from e

    async def create_member(self, draft: MemberDraft) -> None:
        """POST /members/create with the member payload (no id)."""
        await self._request("POST", "/members/create", json=draft.to_payload())

    async def update_member(self, member_id: str, fields: MemberDraft | dict[str, Any]) -> None:
        """PATCH /members/{id} with the fields to change."""
        payload = fields.to_payload() if isinstance(fields, MemberDraft) else fields
        await self._request("PATCH", f"/members/{member_id}", json=payload)

    async def set_payment_status(
        self, member_id: str, month: str, receiver_id: str, paid: bool
    ) -> None:
        """PATCH /members/{id}/payment-status for one (member, month, receiver) flag."""
        await self._request(
            "PATCH",
            f"/members/{member_id}/payment-status",
            json={"month": month, "receiverId": receiver_id, "paid": paid},
        )


__all__ = ["DirectoryServiceError", "MemberDirectoryClient"]
