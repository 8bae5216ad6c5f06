from __future__ import annotations

"""
Webhook client utilities for the booking notification.

Responsibilities:
  - Own the shared httpx.AsyncClient used for outbound webhook calls.
  - Provide a single post_json(...) function for services to use.

The booking webhook is an automation endpoint (make.com scenario):
  - no authentication header
  - JSON body
  - response body is ignored; only success/failure of the call matters
"""

import httpx

from app.core.config import get_settings

settings = get_settings()


def create_webhook_client() -> httpx.AsyncClient:
    """
    Create the async HTTP client used for webhook calls.

    BOOKING_WEBHOOK_TIMEOUT=None disables timeouts entirely.
    The caller owns the client and must close it (aclose) on shutdown.
    """
    return httpx.AsyncClient(timeout=settings.BOOKING_WEBHOOK_TIMEOUT)


async def post_json(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, str],
) -> httpx.Response:
    """
    POST a JSON document to a webhook.

    Parameters
    ----------
    client:
        Shared async client (see create_webhook_client).
    url:
        Target webhook URL.
    payload:
        JSON-serialisable body; sent with Content-Type application/json.

    Raises
    ------
    httpx.HTTPError:
        If the connection fails or the webhook answers with an error status.
    """
    response = await client.post(url, json=payload)
    response.raise_for_status()
    return response
