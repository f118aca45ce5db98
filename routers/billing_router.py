"""
Billing Router - subscription plans, checkout and status reconciliation
"""

import logging
from fastapi import APIRouter, Depends

from auth import get_app_store
from backend.errors import AppError, AuthError
from backend.utils.responses import app_error_response, success_response
from services import feature_gate
from services.app_store import AppStore
from services.billing_service import SUBSCRIPTION_PLANS

logger = logging.getLogger(__name__)

# Create billing router
billing_router = APIRouter(prefix="/api/subscription", tags=["subscription"])


@billing_router.get("/plans")
async def list_plans():
    return success_response(SUBSCRIPTION_PLANS)


@billing_router.get("/status")
async def subscription_status(store: AppStore = Depends(get_app_store)):
    """Local tier, display info and any checkout still awaiting confirmation"""
    return success_response({
        "subscription_tier": store.subscription_tier.value,
        "is_premium": store.is_premium(),
        "info": feature_gate.subscription_info(store.subscription_tier),
        "pending_checkout": store.pending_checkout.model_dump(mode="json") if store.pending_checkout else None,
    })


async def _begin_checkout(store: AppStore, trial: bool):
    if not store.authenticated:
        # Subscribe call-to-action for visitors opens the auth form instead
        return app_error_response(AuthError("Sign in to subscribe"))
    try:
        if trial:
            pending = await store.begin_trial_upgrade()
        else:
            pending = await store.begin_premium_upgrade()
    except AppError as e:
        return app_error_response(e)
    return success_response(pending.model_dump(mode="json"), message="Checkout started")


@billing_router.post("/trial")
async def start_trial_checkout(store: AppStore = Depends(get_app_store)):
    """
    Start a trial checkout. The tier does not change until /confirm reports
    the payment collaborator's status.
    """
    return await _begin_checkout(store, trial=True)


@billing_router.post("/premium")
async def start_premium_checkout(store: AppStore = Depends(get_app_store)):
    return await _begin_checkout(store, trial=False)


@billing_router.post("/portal")
async def open_billing_portal(store: AppStore = Depends(get_app_store)):
    """Subscription-management portal (update payment method, cancel)"""
    if not store.authenticated:
        return app_error_response(AuthError("Sign in to manage your subscription"))
    try:
        url = await store.open_billing_portal()
    except AppError as e:
        return app_error_response(e)
    return success_response({"url": url})


@billing_router.post("/confirm")
async def confirm_subscription(store: AppStore = Depends(get_app_store)):
    """Reconcile the local tier with the payment collaborator (after checkout returns)"""
    if not store.authenticated:
        return app_error_response(AuthError("Not signed in"))
    try:
        session = await store.reconcile_subscription()
    except AppError as e:
        return app_error_response(e)
    return success_response(store.view(), message=f"Subscription is {session.subscription_tier.value}")
