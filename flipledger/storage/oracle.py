"""HTTP bridge to the remote user record store ("Oracle")."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from ..domain.exceptions import UpstreamUnavailable
from .base import UserRecord, UserRecordStore, normalize_address

logger = logging.getLogger(__name__)


class OracleUserStore(UserRecordStore):
    """Talk to the Oracle service over its bearer-authenticated JSON API.

    ``GET {url}/api/users/get?address=...`` returns ``{"user": {...}}`` or 404;
    ``POST {url}/api/users/update`` accepts ``{"address", "userData"}`` and
    creates the record when it does not exist yet. Any transport error or
    unexpected status is reported as :class:`UpstreamUnavailable`.
    """

    def __init__(
        self,
        base_url: str,
        secret: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
        )
        self._headers = {
            "Authorization": f"Bearer {secret}",
            "Content-Type": "application/json",
        }

    async def get(self, address: str) -> UserRecord | None:
        key = normalize_address(address)
        try:
            response = await self._client.get(
                "/api/users/get", params={"address": key}, headers=self._headers
            )
        except httpx.HTTPError as exc:
            logger.warning("Oracle get for %s failed: %s", key, exc)
            raise UpstreamUnavailable(f"Record store unreachable: {exc}") from exc

        if response.status_code == 404:
            return None
        if response.is_error:
            logger.warning(
                "Oracle get for %s returned %s: %s", key, response.status_code, response.text
            )
            raise UpstreamUnavailable(f"Record store returned {response.status_code}")
        user = _user_payload(response, key)
        return UserRecord.from_dict(user) if user else None

    async def update(self, address: str, partial: Mapping[str, Any]) -> UserRecord:
        key = normalize_address(address)
        try:
            response = await self._client.post(
                "/api/users/update",
                json={"address": key, "userData": dict(partial)},
                headers=self._headers,
            )
        except httpx.HTTPError as exc:
            logger.warning("Oracle update for %s failed: %s", key, exc)
            raise UpstreamUnavailable(f"Record store unreachable: {exc}") from exc

        if response.is_error:
            logger.warning(
                "Oracle update for %s returned %s: %s",
                key,
                response.status_code,
                response.text,
            )
            raise UpstreamUnavailable(f"Failed to update user on Oracle ({response.status_code})")

        user = _user_payload(response, key)
        if user:
            return UserRecord.from_dict(user)
        # Older Oracle builds acknowledge without echoing the record.
        record = await self.get(key)
        if record is None:
            raise UpstreamUnavailable(f"Oracle acknowledged update but lost record {key}")
        return record

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _user_payload(response: httpx.Response, key: str) -> dict[str, Any] | None:
    """The ``user`` object of a 2xx reply, or None when the reply has none."""
    try:
        body = response.json()
    except ValueError as exc:
        logger.warning("Oracle reply for %s is not JSON: %.200s", key, response.text)
        raise UpstreamUnavailable("Record store returned a malformed reply") from exc
    if not isinstance(body, dict):
        raise UpstreamUnavailable("Record store returned a malformed reply")
    user = body.get("user")
    if user is not None and not isinstance(user, dict):
        raise UpstreamUnavailable("Record store returned a malformed user")
    return user
