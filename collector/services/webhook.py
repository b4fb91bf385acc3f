"""Shared HTTP client for the workflow-automation webhook (n8n).

One httpx.AsyncClient is reused for every trigger call and closed on
application shutdown.
"""

import logging
import time
from typing import Optional
from uuid import UUID

import httpx

from collector.config import settings
from collector.exceptions import UpstreamError, WebhookNotConfiguredError

logger = logging.getLogger(__name__)

# Singleton client instance
_client: Optional[httpx.AsyncClient] = None


async def get_client() -> httpx.AsyncClient:
    """Get or create the shared webhook HTTP client."""
    global _client

    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.WEBHOOK_TIMEOUT, connect=10.0),
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=2),
        )
        logger.debug("Created webhook HTTP client")

    return _client


async def close_client() -> None:
    """Close the shared client (call on application shutdown)."""
    global _client

    if _client is not None and not _client.is_closed:
        await _client.aclose()
        _client = None
        logger.debug("Closed webhook HTTP client")


def ensure_configured() -> None:
    """Raise WebhookNotConfiguredError if no webhook URL is set."""
    if not settings.webhook_configured:
        raise WebhookNotConfiguredError(
            "Webhook URL not configured on server. Set WEBHOOK_URL (or N8N_WEBHOOK_URL)."
        )


async def trigger_run(run_id: UUID) -> str:
    """Call the workflow webhook for a run.

    Returns the response body on 2xx.

    Raises:
        WebhookNotConfiguredError: WEBHOOK_URL is empty.
        UpstreamError: non-2xx status or the request itself failed.
    """
    ensure_configured()

    url = settings.WEBHOOK_URL
    client = await get_client()
    logger.info(f"Calling workflow webhook: run_id={run_id} url={url}")

    start = time.monotonic()
    try:
        response = await client.get(
            url,
            params={"runId": str(run_id)},
            auth=settings.webhook_auth,
        )
    except httpx.HTTPError as e:
        logger.error(f"Webhook call failed: run_id={run_id} error={e!r}")
        raise UpstreamError(f"Failed to call webhook: {e}") from e

    elapsed_ms = int((time.monotonic() - start) * 1000)
    body = response.text
    logger.info(
        f"Webhook responded: run_id={run_id} status={response.status_code} "
        f"time={elapsed_ms}ms body={body[:200]!r}"
    )

    if not response.is_success:
        raise UpstreamError(
            f"Webhook failed with status {response.status_code}",
            details=body,
        )

    return body
