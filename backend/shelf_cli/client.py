"""HTTP client helpers for the Shelfarr CLI."""
from __future__ import annotations

import httpx

DEFAULT_TIMEOUT = 10.0
USER_HEADER = "X-User-Id"


def create_client(
    base_url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    user_id: str | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Instantiate an HTTPX client for the library API.

    ``user_id`` is sent with every request so progress filters and overlays
    resolve against that user instead of the server default.
    """

    headers = {USER_HEADER: user_id} if user_id else None
    return httpx.Client(base_url=base_url, timeout=timeout, headers=headers, transport=transport)
