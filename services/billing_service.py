"""
Billing Service - payment collaborator (Stripe checkout + subscription status)
"""

import asyncio
import logging
from typing import Dict, Optional
from urllib.parse import urlencode

import stripe

from backend.errors import ProviderError
from config.settings import PLAN_PREMIUM, PLAN_TRIAL, TRIAL_DAYS
from models.session import SubscriptionTier

logger = logging.getLogger(__name__)

# Plan catalogue shown on the paywall
SUBSCRIPTION_PLANS = {
    "premium": {
        "name": "Premium",
        "price": "$3",
        "interval": "month",
        "plan_id": PLAN_PREMIUM,
        "features": [
            'Personalized "What to Say" Scripts',
            "Audio Recording & Documentation",
            "Multilingual Support (English & Spanish)",
            "Shareable Summary Cards",
        ],
    },
    "trial": {
        "name": f"{TRIAL_DAYS}-Day Free Trial",
        "price": "Free",
        "interval": f"{TRIAL_DAYS} days",
        "plan_id": PLAN_TRIAL,
        "features": [
            "Full access to all premium features",
            "No commitment required",
            "Cancel anytime during trial",
            "Automatic conversion to premium after trial",
        ],
    },
}

# Tier a confirmed checkout of each plan lands on
PLAN_TARGET_TIERS = {
    PLAN_TRIAL: SubscriptionTier.TRIALING,
    PLAN_PREMIUM: SubscriptionTier.ACTIVE,
}


class PaymentProvider:
    """Payment collaborator contract"""

    live = False

    async def create_checkout_session(self, plan_id: str, account_id: str, email: str) -> str:
        """Start a checkout and return the URL the client should be redirected to"""
        raise NotImplementedError

    async def subscription_status(self, account_id: str) -> SubscriptionTier:
        raise NotImplementedError

    async def create_portal_session(self, account_id: str) -> str:
        """Return the URL of the subscription-management portal for an account"""
        raise NotImplementedError


class StripePaymentProvider(PaymentProvider):

    live = True

    def __init__(self, secret_key: str, price_ids: Dict[str, Optional[str]], frontend_url: str):
        stripe.api_key = secret_key
        self.price_ids = price_ids
        self.frontend_url = frontend_url or "http://localhost:5173"

    def _find_customer_id(self, account_id: str) -> Optional[str]:
        customers = stripe.Customer.search(query=f"metadata['account_id']:'{account_id}'", limit=1)
        if customers.data:
            return customers.data[0].id
        return None

    def _create_checkout(self, plan_id: str, account_id: str, email: str) -> str:
        price_id = self.price_ids.get(plan_id)
        if not price_id:
            raise ProviderError(f"No Stripe price configured for plan {plan_id}")

        customer_id = self._find_customer_id(account_id)
        if customer_id is None:
            customer = stripe.Customer.create(
                email=email,
                metadata={"account_id": account_id}
            )
            customer_id = customer.id

        params = {
            "customer": customer_id,
            "payment_method_types": ["card"],
            "line_items": [{"price": price_id, "quantity": 1}],
            "mode": "subscription",
            "success_url": f"{self.frontend_url}/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{self.frontend_url}/cancel",
            "metadata": {"account_id": account_id, "plan_id": plan_id},
        }
        if plan_id == PLAN_TRIAL:
            params["subscription_data"] = {"trial_period_days": TRIAL_DAYS}

        checkout_session = stripe.checkout.Session.create(**params)
        return checkout_session.url

    def _fetch_status(self, account_id: str) -> SubscriptionTier:
        customer_id = self._find_customer_id(account_id)
        if customer_id is None:
            return SubscriptionTier.FREE
        subscriptions = stripe.Subscription.list(customer=customer_id, status="all", limit=1)
        if not subscriptions.data:
            return SubscriptionTier.FREE
        return SubscriptionTier.resolve(subscriptions.data[0].status)

    def _create_portal(self, account_id: str) -> str:
        customer_id = self._find_customer_id(account_id)
        if customer_id is None:
            raise ProviderError("No subscription found for this account")
        portal_session = stripe.billing_portal.Session.create(
            customer=customer_id,
            return_url=f"{self.frontend_url}/settings"
        )
        return portal_session.url

    async def create_checkout_session(self, plan_id: str, account_id: str, email: str) -> str:
        try:
            return await asyncio.to_thread(self._create_checkout, plan_id, account_id, email)
        except ProviderError:
            raise
        except stripe.StripeError as e:
            logger.error(f"Failed to create checkout session: {e}", exc_info=True)
            raise ProviderError("Could not start checkout. Please try again.")

    async def subscription_status(self, account_id: str) -> SubscriptionTier:
        try:
            return await asyncio.to_thread(self._fetch_status, account_id)
        except stripe.StripeError as e:
            logger.error(f"Failed to fetch subscription status: {e}", exc_info=True)
            raise ProviderError("Could not verify subscription status.")

    async def create_portal_session(self, account_id: str) -> str:
        try:
            return await asyncio.to_thread(self._create_portal, account_id)
        except ProviderError:
            raise
        except stripe.StripeError as e:
            logger.error(f"Failed to create billing portal session: {e}", exc_info=True)
            raise ProviderError("Could not open subscription management. Please try again.")


class MockPaymentProvider(PaymentProvider):
    """
    Demo checkout: no payment is taken. The returned URL points back at the
    frontend success page and the subscription counts as confirmed right away.
    """

    def __init__(self, frontend_url: Optional[str] = None):
        self.frontend_url = frontend_url or "http://localhost:5173"
        self._statuses: Dict[str, SubscriptionTier] = {}

    async def create_checkout_session(self, plan_id: str, account_id: str, email: str) -> str:
        target = PLAN_TARGET_TIERS.get(plan_id)
        if target is None:
            raise ProviderError(f"Unknown plan {plan_id}")
        logger.warning("Stripe not configured, using mock checkout")
        self._statuses[account_id] = target
        query = urlencode({"mock_checkout": "1", "plan": plan_id})
        return f"{self.frontend_url}/success?{query}"

    async def subscription_status(self, account_id: str) -> SubscriptionTier:
        return self._statuses.get(account_id, SubscriptionTier.FREE)

    async def create_portal_session(self, account_id: str) -> str:
        logger.warning("Stripe not configured, using mock portal")
        return f"{self.frontend_url}/settings?mock_portal=1"

    def set_status(self, account_id: str, tier: SubscriptionTier) -> None:
        """Simulate a change made outside the app (e.g. cancellation in the billing portal)"""
        self._statuses[account_id] = tier
