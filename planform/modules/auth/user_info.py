from __future__ import annotations

from typing import Optional, Protocol

import httpx


class UserInfoLookupError(RuntimeError):
    pass


class UserInfoLookup(Protocol):
    async def is_verified(self, *, base_url: str, cookie_name: str, token: str) -> bool:
        ...


class HttpUserInfoLookup:
    """
    Asks ``/api/user-info`` whether the session user verified their email.

    Any transport error, timeout, non-2xx status or unparsable body is raised
    as ``UserInfoLookupError``; the caller owns the fail-open/closed policy.
    """

    def __init__(self, *, url: Optional[str] = None, timeout: float = 2.0, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.url = url
        self.timeout = timeout
        self.transport = transport

    def _resolve_url(self, base_url: str) -> str:
        if self.url:
            return self.url
        return base_url.rstrip("/") + "/api/user-info"

    async def is_verified(self, *, base_url: str, cookie_name: str, token: str) -> bool:
        url = self._resolve_url(base_url)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(url, headers={"Cookie": f"{cookie_name}={token}"})
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UserInfoLookupError(f"user-info lookup failed: {type(e).__name__}: {e}") from e

        if not isinstance(data, dict) or "isVerified" not in data:
            raise UserInfoLookupError("user-info lookup returned an unexpected body")
        return bool(data["isVerified"])
