"""Analytics domain types.

Pure domain types with no infrastructure dependencies: event names and
parameters, the immutable provider config, and the deferred-call records
the dispatcher buffers while consent is undecided.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from consentgate.core.config.enums import AnalyticsBackend, Environment

if TYPE_CHECKING:
    from consentgate.core.protocols.analytics import AnalyticsProvider

# GA4 collection limits; applied to every backend for a uniform payload shape.
MAX_EVENT_NAME_LENGTH = 40
MAX_PARAM_NAME_LENGTH = 40
MAX_PARAM_VALUE_LENGTH = 100
MAX_PARAMS_PER_EVENT = 25

ParamValue = Union[str, int, float, bool, None]
EventParams = Mapping[str, ParamValue]


class EventName(str, Enum):
    """Events emitted by application features."""

    MAP_RENDERED = "map_rendered"
    LOCATION_DETAIL_VIEW = "location_detail_view"
    SHARE_CLICK = "share_click"
    SUBMISSION_STARTED = "submission_started"
    SUBMISSION_COMPLETED = "submission_completed"
    EDIT_SUGGESTION_SUBMITTED = "edit_suggestion_submitted"
    PAGE_VIEW = "page_view"


class SubmissionMethod(str, Enum):
    """How a user started or completed a location submission."""

    GOOGLE_MAPS = "google_maps"
    PIN_ON_MAP = "pin_on_map"


class AnalyticsConfig(BaseModel):
    """Provider configuration, created once at startup.

    Only ``measurement_id`` is load-bearing: empty selects the null
    provider. Every other field has a safe default.
    """

    model_config = ConfigDict(frozen=True)

    measurement_id: str = ""
    backend: AnalyticsBackend = AnalyticsBackend.GA4
    api_secret: Optional[str] = None
    host: Optional[str] = None
    debug_mode: bool = False
    anonymize_ip: bool = True
    auto_send_page_view: bool = False
    environment: Environment = Environment.PRD
    client_id: Optional[str] = None
    initial_page_path: str = "/"
    timeout_seconds: float = Field(5.0, gt=0)

    @property
    def has_measurement_id(self) -> bool:
        """Whether a real provider should be selected."""
        return bool(self.measurement_id.strip())


# ---------------------------------------------------------------------------
# Sanitation
# ---------------------------------------------------------------------------


def normalize_event_name(name: Any) -> Optional[str]:
    """Return a usable event name, or None if the call must be dropped."""
    if isinstance(name, EventName):
        return name.value
    if not isinstance(name, str):
        return None
    cleaned = name.strip()
    if not cleaned or len(cleaned) > MAX_EVENT_NAME_LENGTH:
        return None
    return cleaned


def sanitize_params(params: Any) -> dict[str, ParamValue]:
    """Coerce arbitrary input into a bounded, scalar-only parameter dict.

    Non-mappings become ``{}``. ``None``, non-scalar and non-finite values are dropped,
    keys are stringified and truncated, string values are truncated, and
    at most ``MAX_PARAMS_PER_EVENT`` entries are kept in iteration order.
    """
    if not isinstance(params, Mapping):
        return {}

    cleaned: dict[str, ParamValue] = {}
    for key, value in params.items():
        if len(cleaned) >= MAX_PARAMS_PER_EVENT:
            break
        if value is None or not isinstance(value, (str, int, float, bool)):
            continue
        if isinstance(value, float) and not math.isfinite(value):
            continue
        name = str(key).strip()[:MAX_PARAM_NAME_LENGTH]
        if not name:
            continue
        if isinstance(value, Enum):
            value = value.value
        if isinstance(value, str):
            value = value[:MAX_PARAM_VALUE_LENGTH]
        cleaned[name] = value
    return cleaned


# ---------------------------------------------------------------------------
# Deferred calls
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QueuedEvent:
    """A ``track_event`` call held while consent is undecided."""

    seq: int
    name: str
    params: dict[str, ParamValue] = field(default_factory=dict)

    def replay(self, provider: "AnalyticsProvider") -> None:
        """Forward this call to the provider."""
        provider.track_event(self.name, self.params or None)


@dataclass(frozen=True)
class QueuedPageView:
    """A ``track_page_view`` call held while consent is undecided."""

    seq: int
    path: str
    title: Optional[str] = None

    def replay(self, provider: "AnalyticsProvider") -> None:
        """Forward this call to the provider."""
        provider.track_page_view(self.path, self.title)


QueuedCall = Union[QueuedEvent, QueuedPageView]
