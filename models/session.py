from enum import Enum
from typing import Optional

from pydantic import BaseModel


class SubscriptionTier(str, Enum):
    FREE = "free"
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"

    @classmethod
    def resolve(cls, value: Optional[str]) -> "SubscriptionTier":
        """Map a stored/remote status string to a tier; unknown values are free"""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.FREE
        value = str(value).strip().lower()
        value = LEGACY_TIER_ALIASES.get(value, value)
        try:
            return cls(value)
        except ValueError:
            return cls.FREE


# Older account rows used premium/trial
LEGACY_TIER_ALIASES = {
    "premium": "active",
    "trial": "trialing",
}


class Feature(str, Enum):
    GUIDES = "guides"
    SCRIPTS = "scripts"
    RECORDING = "recording"
    MULTILINGUAL = "multilingual"


class Identity(BaseModel):
    id: str
    email: str
    preferred_language: str = "en"


class PendingCheckout(BaseModel):
    """A started checkout; the tier changes only once the payment collaborator confirms it"""

    plan_id: str
    target_tier: SubscriptionTier
    redirect_url: str


class Session(BaseModel):
    identity: Optional[Identity] = None
    authenticated: bool = False
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE

    @classmethod
    def initial(cls) -> "Session":
        return cls()
