"""Webhook client tests with httpx.MockTransport."""

from uuid import uuid4

import httpx
import pytest

from collector.config import settings
from collector.exceptions import UpstreamError, WebhookNotConfiguredError
from collector.services import webhook


class TestTriggerRun:
    """trigger_run()"""

    async def test_get_with_run_id(self, fake_webhook, monkeypatch):
        monkeypatch.setattr(settings, "WEBHOOK_USER", "")
        run_id = uuid4()

        body = await webhook.trigger_run(run_id)

        assert body == "Workflow was started"
        (request,) = fake_webhook.requests
        assert request.method == "GET"
        assert str(request.url) == f"http://n8n.test/webhook/collector?runId={run_id}"
        assert "authorization" not in request.headers

    async def test_basic_auth_when_configured(self, fake_webhook, monkeypatch):
        monkeypatch.setattr(settings, "WEBHOOK_USER", "n8n")
        monkeypatch.setattr(settings, "WEBHOOK_PASSWORD", "secret")

        await webhook.trigger_run(uuid4())

        (request,) = fake_webhook.requests
        # base64("n8n:secret")
        assert request.headers["authorization"] == "Basic bjhuOnNlY3JldA=="

    async def test_non_2xx_raises_upstream_error(self, fake_webhook):
        fake_webhook.status_code = 404
        fake_webhook.body = '{"message": "webhook not registered"}'

        with pytest.raises(UpstreamError) as exc_info:
            await webhook.trigger_run(uuid4())

        assert exc_info.value.message == "Webhook failed with status 404"
        assert exc_info.value.details == '{"message": "webhook not registered"}'
        assert exc_info.value.status_code == 502

    async def test_transport_error_raises_upstream_error(self, fake_webhook):
        fake_webhook.error = httpx.ReadTimeout("timed out")

        with pytest.raises(UpstreamError, match="Failed to call webhook: timed out"):
            await webhook.trigger_run(uuid4())

    async def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "WEBHOOK_URL", "")

        with pytest.raises(WebhookNotConfiguredError):
            await webhook.trigger_run(uuid4())


class TestClient:
    """Shared client lifecycle"""

    async def test_client_reused_and_closed(self, monkeypatch):
        monkeypatch.setattr(webhook, "_client", None)

        first = await webhook.get_client()
        second = await webhook.get_client()
        assert first is second

        await webhook.close_client()
        assert first.is_closed
        assert webhook._client is None
