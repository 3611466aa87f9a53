"""Google Analytics 4 provider over the Measurement Protocol.

Consent Mode semantics:
- consent defaults to DENIED at init; nothing is sent until the user grants
- ``update_consent`` flips ``analytics_storage`` for subsequent calls
- ad-related consent is always reported as denied (no ads usage)

Sends are fire-and-forget: each payload is POSTed from a background task
on the running event loop, or from the provider's single worker thread
when no loop is running. Callers never wait for delivery.
Transport failures are retried, then logged and dropped.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional, Union
from uuid import uuid4

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from consentgate.core.exceptions import AnalyticsTransportError
from consentgate.core.protocols.analytics import AnalyticsProvider
from consentgate.domains.analytics.types import AnalyticsConfig, EventName, EventParams

logger = logging.getLogger(__name__)

GA4_COLLECT_URL = "https://www.google-analytics.com/mp/collect"

_Transport = Union[httpx.AsyncBaseTransport, httpx.BaseTransport]


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, AnalyticsTransportError) and exc.status_code >= 500


_retry_policy = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, max=2),
    retry=retry_if_exception(_is_retryable),
    reraise=True,
)


class GoogleAnalyticsProvider(AnalyticsProvider):
    """GA4 Measurement Protocol implementation of AnalyticsProvider.

    Args:
        transport: Optional httpx transport, used for both the async client
            and the no-loop fallback (tests pass ``httpx.MockTransport``).
    """

    def __init__(self, *, transport: Optional[_Transport] = None) -> None:
        """Create an uninitialized, consent-denied provider."""
        self._transport = transport
        self._config: Optional[AnalyticsConfig] = None
        self._client: Optional[httpx.AsyncClient] = None
        self._client_id: Optional[str] = None
        self._ready = False
        self._closed = False
        self._granted = False
        self._held_page_view: Optional[tuple[str, Optional[str]]] = None
        self._pending: set[asyncio.Task] = set()
        self._executor: Optional[ThreadPoolExecutor] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self, config: AnalyticsConfig) -> None:
        """Configure the client with consent DENIED by default."""
        if self._ready:
            logger.debug("GA4 provider already initialized, ignoring repeated init")
            return

        if not config.has_measurement_id:
            logger.warning("GA4 provider needs a measurement id; staying not ready")
            return

        try:
            self._config = config
            self._client_id = config.client_id or str(uuid4())
            self._granted = False
            self._client = httpx.AsyncClient(
                timeout=config.timeout_seconds,
                transport=self._transport,  # type: ignore[arg-type]
            )
            if config.auto_send_page_view:
                self._held_page_view = (config.initial_page_path, None)
            self._ready = True
        except Exception as e:
            logger.error(f"GA4 provider init failed: {e}")
            self._ready = False
            return

        if not config.api_secret:
            logger.warning("GA4 provider has no api_secret; the backend may reject events")
        self._diag("GA4 initialized with Consent Mode (default: DENIED)")
        self._diag(f"Measurement ID: {config.measurement_id}")

    def is_ready(self) -> bool:
        """Return whether init succeeded and the provider is still open."""
        return self._ready and not self._closed

    async def aclose(self) -> None:
        """Wait for in-flight sends, then close the HTTP client."""
        if self._closed:
            return
        self._closed = True
        try:
            if self._pending:
                await asyncio.gather(*list(self._pending), return_exceptions=True)
            if self._executor is not None:
                await asyncio.to_thread(self._executor.shutdown, wait=True)
            if self._client is not None:
                await self._client.aclose()
        except Exception as e:
            logger.error(f"GA4 provider shutdown failed: {e}")

    # ------------------------------------------------------------------
    # Consent
    # ------------------------------------------------------------------

    def update_consent(self, granted: bool) -> None:
        """Set ``analytics_storage`` to granted or denied."""
        if not self.is_ready():
            logger.warning("Cannot update consent - GA4 provider not ready")
            return

        self._granted = bool(granted)
        self._diag(f"Consent updated: {'GRANTED' if self._granted else 'DENIED'}")

        held, self._held_page_view = self._held_page_view, None
        if self._granted and held is not None:
            self.track_page_view(*held)

    @property
    def consent_granted(self) -> bool:
        """Current ``analytics_storage`` state."""
        return self._granted

    @property
    def client_id(self) -> Optional[str]:
        """Pseudonymous client id attached to every payload."""
        return self._client_id

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def track_event(self, name: str, params: Optional[EventParams] = None) -> None:
        """Send a custom event if consent is granted."""
        if not self._can_send():
            return
        try:
            event_params = {**dict(params or {}), **self._base_params()}
            self._dispatch(self._payload(str(name), event_params))
            self._diag(f"Event tracked: {name} {dict(params or {})}")
        except Exception as e:
            logger.error(f"Failed to track analytics event '{name}': {e}")

    def track_page_view(self, path: str, title: Optional[str] = None) -> None:
        """Send a ``page_view`` event if consent is granted."""
        if not self._can_send():
            return
        try:
            params: Dict[str, Any] = {"page_path": path, **self._base_params()}
            if title:
                params["page_title"] = title
            self._dispatch(self._payload(EventName.PAGE_VIEW.value, params))
            self._diag(f"Page view tracked: {path} {title or ''}".rstrip())
        except Exception as e:
            logger.error(f"Failed to track page view '{path}': {e}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _can_send(self) -> bool:
        return self.is_ready() and self._granted

    def _diag(self, message: str) -> None:
        debug = self._config is not None and self._config.debug_mode
        logger.log(logging.INFO if debug else logging.DEBUG, f"[Analytics] {message}")

    def _base_params(self) -> Dict[str, Any]:
        assert self._config is not None
        params: Dict[str, Any] = {"environment": self._config.environment.label}
        if self._config.anonymize_ip:
            params["anonymize_ip"] = True
        if self._config.debug_mode:
            params["debug_mode"] = True
        return params

    def _payload(self, name: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "client_id": self._client_id,
            "consent": {"ad_user_data": "DENIED", "ad_personalization": "DENIED"},
            "events": [{"name": name, "params": params}],
        }

    def _request_params(self) -> Dict[str, str]:
        assert self._config is not None
        query = {"measurement_id": self._config.measurement_id}
        if self._config.api_secret:
            query["api_secret"] = self._config.api_secret
        return query

    def _url(self) -> str:
        assert self._config is not None
        return self._config.host or GA4_COLLECT_URL

    def _dispatch(self, payload: Dict[str, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._submit_blocking(payload)
            return
        task = loop.create_task(self._send(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _submit_blocking(self, payload: Dict[str, Any]) -> None:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ga4-send")
        self._executor.submit(self._send_blocking, payload)

    async def _send(self, payload: Dict[str, Any]) -> None:
        try:
            await self._post(payload)
        except (httpx.HTTPError, AnalyticsTransportError) as e:
            logger.warning(f"GA4 delivery failed, dropping event: {e}")
        except Exception as e:
            logger.error(f"GA4 delivery raised unexpectedly, dropping event: {e}")

    def _send_blocking(self, payload: Dict[str, Any]) -> None:
        try:
            self._post_blocking(payload)
        except (httpx.HTTPError, AnalyticsTransportError) as e:
            logger.warning(f"GA4 delivery failed, dropping event: {e}")
        except Exception as e:
            logger.error(f"GA4 delivery raised unexpectedly, dropping event: {e}")

    @_retry_policy
    async def _post(self, payload: Dict[str, Any]) -> None:
        assert self._client is not None
        response = await self._client.post(self._url(), params=self._request_params(), json=payload)
        if response.status_code >= 400:
            raise AnalyticsTransportError(response.status_code)

    @_retry_policy
    def _post_blocking(self, payload: Dict[str, Any]) -> None:
        assert self._config is not None
        with httpx.Client(
            timeout=self._config.timeout_seconds,
            transport=self._transport,  # type: ignore[arg-type]
        ) as client:
            response = client.post(self._url(), params=self._request_params(), json=payload)
        if response.status_code >= 400:
            raise AnalyticsTransportError(response.status_code)
