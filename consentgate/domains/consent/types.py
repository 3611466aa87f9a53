"""Consent domain types.

Bump ``CONSENT_POLICY_VERSION`` whenever a new tracking category is
introduced. Every previously persisted decision is then ignored on the
next load and the user is asked again.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

CONSENT_POLICY_VERSION = 1
CONSENT_STORAGE_KEY = "consentgate.consent.v1"


class ConsentDecision(str, Enum):
    """The user's current analytics consent."""

    GRANTED = "granted"
    DENIED = "denied"
    UNDECIDED = "undecided"


class ConsentState(BaseModel):
    """Persisted record of one consent decision.

    Serialized with camelCase keys:
        {"analyticsGranted": true, "decidedAt": "...", "policyVersion": 1}
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    analytics_granted: bool
    decided_at: Optional[datetime] = None
    policy_version: int

    @property
    def decision(self) -> ConsentDecision:
        """Map the record onto a decision."""
        if self.decided_at is None:
            return ConsentDecision.UNDECIDED
        return ConsentDecision.GRANTED if self.analytics_granted else ConsentDecision.DENIED

    def is_current(self, policy_version: int = CONSENT_POLICY_VERSION) -> bool:
        """Whether this record may be honored under ``policy_version``."""
        return self.decided_at is not None and self.policy_version == policy_version

    def to_json(self) -> str:
        """Serialize for the consent store."""
        return self.model_dump_json(by_alias=True)
