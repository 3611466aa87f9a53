"""Unit tests for GoogleAnalyticsProvider over a mocked Measurement Protocol endpoint."""

import asyncio
import json
import math
import time

import httpx
import pytest

from consentgate.adapters.analytics.ga4 import GA4_COLLECT_URL, GoogleAnalyticsProvider
from consentgate.core.config.enums import Environment
from consentgate.core.protocols import AnalyticsProvider
from consentgate.domains.analytics.types import AnalyticsConfig


class _Collector:
    """Records requests and answers with scripted status codes (then 204)."""

    def __init__(self, statuses=()):
        self.requests: list[httpx.Request] = []
        self._statuses = list(statuses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status = self._statuses.pop(0) if self._statuses else 204
        return httpx.Response(status)

    @property
    def events(self) -> list[dict]:
        return [json.loads(r.content)["events"][0] for r in self.requests]

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


def _config(**overrides) -> AnalyticsConfig:
    defaults = {
        "measurement_id": "G-TEST123",
        "api_secret": "s3cret",
        "client_id": "cid-1",
        "environment": Environment.PRD,
    }
    defaults.update(overrides)
    return AnalyticsConfig(**defaults)


def _provider(collector: _Collector) -> GoogleAnalyticsProvider:
    return GoogleAnalyticsProvider(transport=httpx.MockTransport(collector))


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


class TestInit:
    def test_satisfies_protocol(self):
        assert isinstance(GoogleAnalyticsProvider(), AnalyticsProvider)

    @pytest.mark.asyncio
    async def test_ready_and_denied_after_init(self):
        provider = _provider(_Collector())

        await provider.init(_config())

        assert provider.is_ready() is True
        assert provider.consent_granted is False
        assert provider.client_id == "cid-1"
        await provider.aclose()

    @pytest.mark.asyncio
    async def test_missing_measurement_id_stays_not_ready(self):
        provider = _provider(_Collector())

        await provider.init(_config(measurement_id=""))

        assert provider.is_ready() is False

    @pytest.mark.asyncio
    async def test_missing_optional_fields_do_not_raise(self):
        provider = _provider(_Collector())

        await provider.init(AnalyticsConfig(measurement_id="G-TEST123"))

        assert provider.is_ready() is True
        assert provider.client_id
        await provider.aclose()

    @pytest.mark.asyncio
    async def test_repeated_init_is_ignored(self):
        provider = _provider(_Collector())

        await provider.init(_config(client_id="first"))
        await provider.init(_config(client_id="second"))

        assert provider.client_id == "first"
        await provider.aclose()

    def test_consent_update_before_init_is_safe(self):
        provider = _provider(_Collector())

        provider.update_consent(True)

        assert provider.consent_granted is False


# ---------------------------------------------------------------------------
# Consent Mode
# ---------------------------------------------------------------------------


class TestConsentMode:
    @pytest.mark.asyncio
    async def test_nothing_sent_while_denied(self):
        collector = _Collector()
        provider = _provider(collector)
        await provider.init(_config())

        provider.track_event("map_rendered")
        provider.track_page_view("/")
        await provider.aclose()

        assert collector.requests == []

    @pytest.mark.asyncio
    async def test_revoked_consent_stops_sending(self):
        collector = _Collector()
        provider = _provider(collector)
        await provider.init(_config())

        provider.update_consent(True)
        provider.track_event("sent")
        provider.update_consent(False)
        provider.track_event("blocked")
        await provider.aclose()

        assert [e["name"] for e in collector.events] == ["sent"]


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class TestPayload:
    @pytest.mark.asyncio
    async def test_event_request_shape(self):
        collector = _Collector()
        provider = _provider(collector)
        await provider.init(_config())
        provider.update_consent(True)

        provider.track_event("share_click", {"method": "copy_link"})
        await provider.aclose()

        (request,) = collector.requests
        assert request.method == "POST"
        assert str(request.url).startswith(GA4_COLLECT_URL)
        assert request.url.params["measurement_id"] == "G-TEST123"
        assert request.url.params["api_secret"] == "s3cret"

        (payload,) = collector.payloads
        assert payload["client_id"] == "cid-1"
        assert payload["consent"] == {"ad_user_data": "DENIED", "ad_personalization": "DENIED"}
        assert payload["events"] == [
            {
                "name": "share_click",
                "params": {
                    "method": "copy_link",
                    "environment": "production",
                    "anonymize_ip": True,
                },
            }
        ]

    @pytest.mark.asyncio
    async def test_page_view_params(self):
        collector = _Collector()
        provider = _provider(collector)
        await provider.init(_config(environment=Environment.DEV, debug_mode=True))
        provider.update_consent(True)

        provider.track_page_view("/about", "About")
        await provider.aclose()

        (event,) = collector.events
        assert event["name"] == "page_view"
        assert event["params"] == {
            "page_path": "/about",
            "page_title": "About",
            "environment": "development",
            "anonymize_ip": True,
            "debug_mode": True,
        }

    @pytest.mark.asyncio
    async def test_anonymize_ip_can_be_disabled(self):
        collector = _Collector()
        provider = _provider(collector)
        await provider.init(_config(anonymize_ip=False))
        provider.update_consent(True)

        provider.track_event("e")
        await provider.aclose()

        assert "anonymize_ip" not in collector.events[0]["params"]

    @pytest.mark.asyncio
    async def test_custom_host(self):
        collector = _Collector()
        provider = _provider(collector)
        await provider.init(_config(host="https://collect.example.test/mp/collect"))
        provider.update_consent(True)

        provider.track_event("e")
        await provider.aclose()

        assert collector.requests[0].url.host == "collect.example.test"

    @pytest.mark.asyncio
    async def test_missing_api_secret_omitted_from_query(self):
        collector = _Collector()
        provider = _provider(collector)
        await provider.init(_config(api_secret=None))
        provider.update_consent(True)

        provider.track_event("e")
        await provider.aclose()

        assert "api_secret" not in collector.requests[0].url.params


# ---------------------------------------------------------------------------
# Auto page view
# ---------------------------------------------------------------------------


class TestAutoPageView:
    @pytest.mark.asyncio
    async def test_held_until_grant(self):
        collector = _Collector()
        provider = _provider(collector)
        await provider.init(_config(auto_send_page_view=True, initial_page_path="/start"))
        await asyncio.sleep(0)
        assert collector.requests == []

        provider.update_consent(True)
        provider.update_consent(True)
        await provider.aclose()

        assert [e["params"]["page_path"] for e in collector.events] == ["/start"]

    @pytest.mark.asyncio
    async def test_discarded_on_deny(self):
        collector = _Collector()
        provider = _provider(collector)
        await provider.init(_config(auto_send_page_view=True))

        provider.update_consent(False)
        provider.update_consent(True)
        await provider.aclose()

        assert collector.requests == []


# ---------------------------------------------------------------------------
# Delivery failures
# ---------------------------------------------------------------------------


class TestDelivery:
    @pytest.mark.asyncio
    async def test_server_errors_are_retried(self):
        collector = _Collector(statuses=[503, 500])
        provider = _provider(collector)
        await provider.init(_config())
        provider.update_consent(True)

        provider.track_event("e")
        await provider.aclose()

        assert len(collector.requests) == 3

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self):
        collector = _Collector(statuses=[400])
        provider = _provider(collector)
        await provider.init(_config())
        provider.update_consent(True)

        provider.track_event("e")
        await provider.aclose()

        assert len(collector.requests) == 1

    @pytest.mark.asyncio
    async def test_transport_errors_are_absorbed(self):
        attempts = []

        def _unreachable(request):
            attempts.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        provider = GoogleAnalyticsProvider(transport=httpx.MockTransport(_unreachable))
        await provider.init(_config())
        provider.update_consent(True)

        provider.track_event("e")
        await provider.aclose()

        assert len(attempts) == 3

    def test_sends_from_worker_thread_without_running_loop(self):
        collector = _Collector()
        provider = _provider(collector)
        asyncio.run(provider.init(_config()))
        provider.update_consent(True)

        provider.track_event("offline_event")
        asyncio.run(provider.aclose())

        assert [e["name"] for e in collector.events] == ["offline_event"]

    def test_caller_not_blocked_by_retries_without_running_loop(self):
        collector = _Collector(statuses=[503, 503, 503])
        provider = _provider(collector)
        asyncio.run(provider.init(_config()))
        provider.update_consent(True)

        started = time.monotonic()
        provider.track_event("slow_backend")
        elapsed = time.monotonic() - started
        asyncio.run(provider.aclose())

        assert elapsed < 0.15
        assert len(collector.requests) == 3

    @pytest.mark.asyncio
    async def test_unserializable_params_never_escape_send_task(self):
        collector = _Collector()
        provider = _provider(collector)
        await provider.init(_config())
        provider.update_consent(True)

        provider.track_event("bad_value", {"v": math.nan})
        tasks = list(provider._pending)
        await provider.aclose()

        assert tasks
        assert all(task.done() and task.exception() is None for task in tasks)

    @pytest.mark.asyncio
    async def test_closed_provider_stops_sending(self):
        collector = _Collector()
        provider = _provider(collector)
        await provider.init(_config())
        provider.update_consent(True)

        await provider.aclose()
        provider.track_event("late")

        assert collector.requests == []
        assert provider.is_ready() is False
