"""
Feature gating rules.

Access policy:
- guides are always available
- scripts, recording and multilingual need a premium tier (trialing or active)
- anything not listed in GATED_FEATURES is ungated

Tabs map onto features; a tab shows as locked only when its feature is gated
for the session and the visitor has not signed in yet (signed-in users see the
upgrade prompt inside the tab instead).
"""

from typing import Dict, List, Union

from models.session import Feature, SubscriptionTier

PREMIUM_TIERS = frozenset({SubscriptionTier.TRIALING, SubscriptionTier.ACTIVE})

# Tiers backed by a trial or subscription that can still be canceled
SUBSCRIBED_TIERS = PREMIUM_TIERS | {SubscriptionTier.PAST_DUE}

GATED_FEATURES = frozenset({Feature.SCRIPTS, Feature.RECORDING, Feature.MULTILINGUAL})

# Tab id -> feature it exposes
TABS = {
    "guides": Feature.GUIDES,
    "scripts": Feature.SCRIPTS,
    "record": Feature.RECORDING,
}

SUBSCRIPTION_INFO = {
    SubscriptionTier.FREE: {"label": "Free", "color": "gray", "can_upgrade": True},
    SubscriptionTier.TRIALING: {"label": "Free Trial", "color": "blue", "can_upgrade": False},
    SubscriptionTier.ACTIVE: {"label": "Premium", "color": "green", "can_upgrade": False},
    SubscriptionTier.PAST_DUE: {"label": "Payment Due", "color": "yellow", "can_upgrade": False},
    SubscriptionTier.CANCELED: {"label": "Canceled", "color": "red", "can_upgrade": True},
}


def is_premium_tier(tier: Union[SubscriptionTier, str]) -> bool:
    return SubscriptionTier.resolve(tier) in PREMIUM_TIERS


def is_subscribed_tier(tier: Union[SubscriptionTier, str]) -> bool:
    return SubscriptionTier.resolve(tier) in SUBSCRIBED_TIERS


def _as_feature(feature: Union[Feature, str]):
    if isinstance(feature, Feature):
        return feature
    try:
        return Feature(str(feature).strip().lower())
    except ValueError:
        return None


def can_access(feature: Union[Feature, str], tier: Union[SubscriptionTier, str]) -> bool:
    """Pure access check. Unknown feature ids are treated as ungated."""
    resolved = _as_feature(feature)
    if resolved is None or resolved not in GATED_FEATURES:
        return True
    return is_premium_tier(tier)


def feature_access_map(tier: Union[SubscriptionTier, str]) -> Dict[str, bool]:
    return {feature.value: can_access(feature, tier) for feature in Feature}


def tab_states(tier: Union[SubscriptionTier, str], authenticated: bool) -> List[Dict]:
    states = []
    for tab_id, feature in TABS.items():
        accessible = can_access(feature, tier)
        states.append({
            "id": tab_id,
            "feature": feature.value,
            "accessible": accessible,
            "locked": not accessible and not authenticated,
        })
    return states


def subscription_info(tier: Union[SubscriptionTier, str]) -> Dict:
    return dict(SUBSCRIPTION_INFO[SubscriptionTier.resolve(tier)])
