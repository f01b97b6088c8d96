from __future__ import annotations

"""Async HTTP helper for scraping the upstream rate page.

Single attempt per call: the rate cache TTL decides when to try again, so
there is no retry/backoff loop here. Any transport failure is reported as
UpstreamHttpError so callers only need to handle one family of errors.
"""
from typing import Dict, Optional

import httpx

from estate_api.services.rates.errors import UpstreamHttpError

# Browser-like signature; the upstream site tends to reject bare clients
BROWSER_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,hy;q=0.8,ru;q=0.7",
}


async def get_text(
    url: str,
    *,
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """GET ``url`` and return the decoded body.

    ``transport`` is injectable so tests can stub the network with
    ``httpx.MockTransport``.
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            headers=BROWSER_HEADERS,
            follow_redirects=True,
            transport=transport,
        ) as client:
            resp = await client.get(url)
    except httpx.HTTPError as e:
        raise UpstreamHttpError(f"request to {url} failed: {e!r}") from e
    if not resp.is_success:
        raise UpstreamHttpError(
            f"{url} returned status {resp.status_code}", status_code=resp.status_code
        )
    return resp.text
