"""Typed tracking helpers for application features.

Feature code calls one method per known event instead of assembling names
and parameter dicts by hand. Everything goes through the dispatcher, so
the consent gate applies uniformly.
"""

from typing import Optional, Union

from consentgate.domains.analytics.dispatcher import AnalyticsDispatcher
from consentgate.domains.analytics.types import EventName, EventParams, SubmissionMethod


def _method_value(method: Union[SubmissionMethod, str]) -> str:
    if isinstance(method, SubmissionMethod):
        return method.value
    return str(method)


class AppEventTracker:
    """Strongly-typed tracking methods over an AnalyticsDispatcher."""

    def __init__(self, dispatcher: AnalyticsDispatcher) -> None:
        """Bind the helpers to ``dispatcher``."""
        self._dispatcher = dispatcher

    # =========================================================================
    # Map and location detail
    # =========================================================================

    def track_map_rendered(self) -> None:
        """Track when the map is rendered."""
        self._dispatcher.track_event(EventName.MAP_RENDERED)

    def track_location_detail_view(
        self, location_slug: str, category: Optional[str] = None
    ) -> None:
        """Track when a user views a location detail.

        Args:
        ----
            location_slug: Slug of the viewed location.
            category: Category slug, when the location has one.
        """
        self._dispatcher.track_event(
            EventName.LOCATION_DETAIL_VIEW,
            {"location_slug": location_slug, "category": category},
        )

    def track_share_click(self, method: str, location_slug: str) -> None:
        """Track when a user clicks a share button."""
        self._dispatcher.track_event(
            EventName.SHARE_CLICK,
            {"method": method, "location_slug": location_slug},
        )

    # =========================================================================
    # Submissions and edits
    # =========================================================================

    def track_submission_started(self, method: Union[SubmissionMethod, str]) -> None:
        """Track when a user starts a location submission."""
        self._dispatcher.track_event(
            EventName.SUBMISSION_STARTED, {"method": _method_value(method)}
        )

    def track_submission_completed(self, method: Union[SubmissionMethod, str]) -> None:
        """Track when a user completes a location submission."""
        self._dispatcher.track_event(
            EventName.SUBMISSION_COMPLETED, {"method": _method_value(method)}
        )

    def track_edit_suggestion_submitted(self, location_slug: str) -> None:
        """Track when a user submits an edit suggestion."""
        self._dispatcher.track_event(
            EventName.EDIT_SUGGESTION_SUBMITTED, {"location_slug": location_slug}
        )

    # =========================================================================
    # Generic
    # =========================================================================

    def track_page_view(self, path: str, title: Optional[str] = None) -> None:
        """Track a page view (called by the router on navigation)."""
        self._dispatcher.track_page_view(path, title)

    def track_event(
        self, name: Union[EventName, str], params: Optional[EventParams] = None
    ) -> None:
        """Track a raw event (escape hatch for custom events)."""
        self._dispatcher.track_event(name, params)

    def is_ready(self) -> bool:
        """Check whether analytics is ready."""
        return self._dispatcher.is_ready()
