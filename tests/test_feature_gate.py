"""
Feature gating rules
"""
import pytest

from models.session import Feature, SubscriptionTier
from services import feature_gate


@pytest.mark.parametrize("tier", [SubscriptionTier.TRIALING, SubscriptionTier.ACTIVE])
def test_premium_tiers_unlock_gated_features(tier):
    assert feature_gate.can_access(Feature.SCRIPTS, tier)
    assert feature_gate.can_access(Feature.RECORDING, tier)
    assert feature_gate.can_access(Feature.MULTILINGUAL, tier)


@pytest.mark.parametrize("tier", [SubscriptionTier.FREE, SubscriptionTier.PAST_DUE, SubscriptionTier.CANCELED])
def test_non_premium_tiers_only_get_guides(tier):
    assert feature_gate.can_access(Feature.GUIDES, tier)
    assert not feature_gate.can_access(Feature.SCRIPTS, tier)
    assert not feature_gate.can_access(Feature.RECORDING, tier)
    assert not feature_gate.can_access(Feature.MULTILINGUAL, tier)


def test_unknown_feature_is_ungated():
    assert feature_gate.can_access("dark-mode", SubscriptionTier.FREE)


def test_string_tiers_resolve_including_legacy_values():
    assert feature_gate.is_premium_tier("active")
    assert feature_gate.is_premium_tier("premium")
    assert feature_gate.is_premium_tier("trial")
    assert not feature_gate.is_premium_tier("something-else")
    assert not feature_gate.is_premium_tier(None)


def test_tabs_locked_only_for_anonymous_visitors():
    anonymous = {tab["id"]: tab for tab in feature_gate.tab_states(SubscriptionTier.FREE, authenticated=False)}
    assert anonymous["guides"]["locked"] is False
    assert anonymous["scripts"]["locked"] is True
    assert anonymous["record"]["locked"] is True

    signed_in = {tab["id"]: tab for tab in feature_gate.tab_states(SubscriptionTier.FREE, authenticated=True)}
    assert signed_in["scripts"]["locked"] is False
    assert signed_in["scripts"]["accessible"] is False


def test_feature_access_map_covers_every_feature():
    access = feature_gate.feature_access_map(SubscriptionTier.ACTIVE)
    assert set(access) == {feature.value for feature in Feature}
    assert all(access.values())


def test_subscription_info_is_a_copy():
    info = feature_gate.subscription_info("trialing")
    assert info["label"] == "Free Trial"
    info["label"] = "changed"
    assert feature_gate.SUBSCRIPTION_INFO[SubscriptionTier.TRIALING]["label"] == "Free Trial"


def test_past_due_counts_as_subscribed_but_not_premium():
    assert feature_gate.is_subscribed_tier(SubscriptionTier.PAST_DUE)
    assert feature_gate.is_subscribed_tier(SubscriptionTier.ACTIVE)
    assert not feature_gate.is_premium_tier(SubscriptionTier.PAST_DUE)
    assert not feature_gate.is_subscribed_tier(SubscriptionTier.FREE)
    assert not feature_gate.is_subscribed_tier(SubscriptionTier.CANCELED)
