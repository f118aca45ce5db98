"""
AppStore - per-client session/subscription state.

One AppStore is owned by each client session. It holds the Session
(identity, authenticated flag, subscription tier), the UI fields the frontend
renders from, and the client's recording tracker. Every Session mutation is
written to the state store so it survives a restart.

Collaborator calls go through an OperationRegistry: a second call of the same
kind cancels the first, and the superseded caller never writes state.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from pydantic import ValidationError as PydanticValidationError

from backend.errors import AuthError, FeatureLockedError, NotFoundError, ProviderError, ValidationError
from config.settings import PLAN_PREMIUM, PLAN_TRIAL
from models.guide import Guide
from models.recording import RecordingRecord
from models.session import Feature, Identity, PendingCheckout, Session, SubscriptionTier
from services import feature_gate
from services.billing_service import PLAN_TARGET_TIERS
from services.guide_service import DEFAULT_JURISDICTION, is_known_jurisdiction
from services.identity_service import Account
from services.providers import Providers
from services.recording_service import TICK_SECONDS, RecordingSessionTracker, RecordingTimer
from utils.operation_registry import OperationRegistry
from utils.security_utils import normalize_language, validate_auth_form
from utils.state_store import StateStore

logger = logging.getLogger(__name__)


class AppStore:

    def __init__(
        self,
        providers: Providers,
        state_store: Optional[StateStore] = None,
        client_id: Optional[str] = None,
        tick_interval: float = TICK_SECONDS,
    ):
        self.providers = providers
        self.state_store = state_store
        self.client_id = client_id

        self.session = Session.initial()
        self.selected_jurisdiction = DEFAULT_JURISDICTION
        self.current_guide: Optional[Guide] = None
        self.active_tab = "guides"
        self.is_loading = False
        self.error: Optional[str] = None
        self.pending_checkout: Optional[PendingCheckout] = None

        self.recording = RecordingSessionTracker()
        self.timer = RecordingTimer(self.recording, tick_interval)

        self._operations = OperationRegistry()
        self._in_flight = 0
        self._background: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Session accessors
    # ------------------------------------------------------------------

    @property
    def authenticated(self) -> bool:
        return self.session.authenticated

    @property
    def identity(self) -> Optional[Identity]:
        return self.session.identity

    @property
    def subscription_tier(self) -> SubscriptionTier:
        return self.session.subscription_tier

    def is_premium(self) -> bool:
        return feature_gate.is_premium_tier(self.subscription_tier)

    def can_access(self, feature) -> bool:
        return feature_gate.can_access(feature, self.subscription_tier)

    def require(self, feature: Feature) -> None:
        if not self.can_access(feature):
            raise FeatureLockedError(feature.value)

    def tab_states(self) -> List[Dict]:
        return feature_gate.tab_states(self.subscription_tier, self.authenticated)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {
            "identity": self.identity.model_dump() if self.identity else None,
            "authenticated": self.authenticated,
            "subscription_tier": self.subscription_tier.value,
            "selected_jurisdiction": self.selected_jurisdiction,
        }

    def restore(self, snapshot: Optional[Dict[str, Any]]) -> None:
        """Apply a persisted snapshot, re-establishing the session invariant"""
        if not snapshot:
            return
        identity = None
        if snapshot.get("identity"):
            try:
                identity = Identity(**snapshot["identity"])
            except (TypeError, PydanticValidationError) as e:
                logger.warning(f"Discarding invalid identity in snapshot for {self.client_id}: {e}")

        if identity is not None and snapshot.get("authenticated"):
            self.session = Session(
                identity=identity,
                authenticated=True,
                subscription_tier=SubscriptionTier.resolve(snapshot.get("subscription_tier")),
            )
        else:
            self.session = Session.initial()

        jurisdiction = snapshot.get("selected_jurisdiction")
        if is_known_jurisdiction(jurisdiction):
            self.selected_jurisdiction = jurisdiction.upper()

    def load(self) -> None:
        """Read the persisted snapshot once, when the client session is first used"""
        if self.state_store is None or self.client_id is None:
            return
        self.restore(self.state_store.load(self.client_id))

    def _persist(self) -> None:
        if self.state_store is None or self.client_id is None:
            return
        try:
            self.state_store.save(self.client_id, self.snapshot())
        except Exception as e:
            logger.error(f"Failed to persist state for {self.client_id}: {e}", exc_info=True)

    def _set_session(self, session: Session) -> None:
        if not session.authenticated:
            session = Session.initial()
        self.session = session
        self._persist()

    # ------------------------------------------------------------------
    # Operation plumbing
    # ------------------------------------------------------------------

    async def _run(self, kind: str, awaitable):
        self._in_flight += 1
        self.is_loading = True
        try:
            return await self._operations.run(kind, awaitable)
        finally:
            self._in_flight -= 1
            self.is_loading = self._in_flight > 0

    def _fire_and_forget(self, awaitable) -> None:
        task = asyncio.ensure_future(awaitable)
        self._background.add(task)
        task.add_done_callback(self._background_done)

    def _background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Background remote call failed: {exc}")

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def _apply_account(self, account: Account, tier: Optional[SubscriptionTier] = None) -> None:
        self.pending_checkout = None
        # Guide language depends on the identity and tier
        self.current_guide = None
        self._set_session(Session(
            identity=Identity(
                id=account.id,
                email=account.email,
                preferred_language=normalize_language(account.preferred_language),
            ),
            authenticated=True,
            subscription_tier=SubscriptionTier.resolve(tier or account.tier),
        ))

    async def sign_in(self, email: str, password: str) -> Session:
        validate_auth_form(email, password, mode="signin")
        self.error = None
        try:
            account = await self._run("auth", self.providers.identity.sign_in(email, password))
        except AuthError as e:
            self.error = e.message
            raise
        self._apply_account(account)
        logger.info(f"Client {self.client_id} signed in as account {account.id}")
        return self.session

    async def sign_up(
        self,
        email: str,
        password: str,
        confirm_password: Optional[str],
        profile: Optional[dict] = None,
    ) -> Session:
        validate_auth_form(email, password, confirm_password, mode="signup")
        self.error = None
        try:
            account = await self._run("auth", self.providers.identity.sign_up(email, password, profile or {}))
        except AuthError as e:
            self.error = e.message
            raise
        self._apply_account(account, SubscriptionTier.FREE)
        logger.info(f"Client {self.client_id} signed up as account {account.id}")
        return self.session

    async def sign_out(self) -> Session:
        """Reset to the initial session. Always succeeds; safe to repeat."""
        identity = self.identity
        # Results of in-flight sign-in/checkout calls no longer apply
        self._operations.cancel_all()
        if identity is not None:
            self._fire_and_forget(self.providers.identity.sign_out(identity.id))
        self.current_guide = None
        self.pending_checkout = None
        self.error = None
        self._set_session(Session.initial())
        return self.session

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    async def _begin_upgrade(self, plan_id: str) -> Optional[PendingCheckout]:
        if not self.authenticated:
            return None
        identity = self.identity
        self.error = None
        try:
            redirect_url = await self._run(
                "checkout",
                self.providers.payments.create_checkout_session(plan_id, identity.id, identity.email),
            )
        except ProviderError as e:
            self.error = e.message
            raise
        self.pending_checkout = PendingCheckout(
            plan_id=plan_id,
            target_tier=PLAN_TARGET_TIERS[plan_id],
            redirect_url=redirect_url,
        )
        logger.info(f"Checkout started for account {identity.id} (plan {plan_id})")
        return self.pending_checkout

    async def begin_trial_upgrade(self) -> Optional[PendingCheckout]:
        return await self._begin_upgrade(PLAN_TRIAL)

    async def begin_premium_upgrade(self) -> Optional[PendingCheckout]:
        return await self._begin_upgrade(PLAN_PREMIUM)

    async def reconcile_subscription(self) -> Session:
        """Apply the tier the payment collaborator reports for this account"""
        if not self.authenticated:
            return self.session
        identity = self.identity
        try:
            remote_tier = await self._run("subscription", self.providers.payments.subscription_status(identity.id))
        except ProviderError as e:
            self.error = e.message
            raise

        if remote_tier == SubscriptionTier.CANCELED and feature_gate.is_subscribed_tier(self.subscription_tier):
            logger.info(f"Subscription for account {identity.id} was canceled externally")
            return await self.handle_subscription_canceled()

        if remote_tier != self.subscription_tier:
            self.current_guide = None
        self._set_session(self.session.model_copy(update={"subscription_tier": remote_tier}))
        if feature_gate.is_premium_tier(remote_tier):
            self.pending_checkout = None

        try:
            await self.providers.identity.record_tier(identity.id, remote_tier)
        except Exception as e:
            logger.warning(f"Could not record tier for account {identity.id}: {e}")
        return self.session

    async def handle_subscription_canceled(self) -> Session:
        """A trial/subscription canceled outside the app ends the session"""
        return await self.sign_out()

    async def open_billing_portal(self) -> Optional[str]:
        """Subscription-management portal URL; None when not signed in"""
        if not self.authenticated:
            return None
        identity = self.identity
        self.error = None
        try:
            return await self._run("portal", self.providers.payments.create_portal_session(identity.id))
        except ProviderError as e:
            self.error = e.message
            raise

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def guide_language(self) -> str:
        if self.identity is None or not self.can_access(Feature.MULTILINGUAL):
            return "en"
        return normalize_language(self.identity.preferred_language)

    async def select_jurisdiction(self, code: str) -> Guide:
        if not is_known_jurisdiction(code):
            raise ValidationError({"jurisdiction": f"Unsupported jurisdiction: {code}"})
        self.selected_jurisdiction = code.upper()
        self._persist()
        self.current_guide = await self.providers.guides.get_guide(self.selected_jurisdiction, self.guide_language())
        return self.current_guide

    async def get_current_guide(self) -> Guide:
        if self.current_guide is None or self.current_guide.state != self.selected_jurisdiction:
            self.current_guide = await self.providers.guides.get_guide(self.selected_jurisdiction, self.guide_language())
        return self.current_guide

    def set_active_tab(self, tab: str) -> str:
        feature = feature_gate.TABS.get(tab)
        if feature is None:
            raise ValidationError({"tab": f"Unknown tab: {tab}"})
        if not self.can_access(feature) and not self.authenticated:
            raise FeatureLockedError(feature.value)
        self.active_tab = tab
        return self.active_tab

    def clear_error(self) -> None:
        self.error = None

    # ------------------------------------------------------------------
    # Scripts
    # ------------------------------------------------------------------

    async def generate_script(self, scenario: str, language: str = "en", context: str = "") -> str:
        self.require(Feature.SCRIPTS)
        language = normalize_language(language)
        if language != "en":
            self.require(Feature.MULTILINGUAL)
        return await self._run(
            "generate",
            self.providers.scripts.generate(scenario, self.selected_jurisdiction, language, context or ""),
        )

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def start_recording(self) -> bool:
        self.require(Feature.RECORDING)
        started = self.recording.start()
        if started:
            self.timer.start()
        return started

    def pause_recording(self) -> bool:
        return self.recording.pause()

    def resume_recording(self) -> bool:
        return self.recording.resume()

    def set_notes(self, notes: str) -> None:
        self.recording.set_notes(notes)

    async def stop_recording(self) -> Optional[RecordingRecord]:
        self.timer.stop()
        record = self.recording.stop(location=self.selected_jurisdiction)
        if record is None:
            return None
        if self.authenticated and self.providers.records is not None:
            try:
                await self.providers.records.save(self.identity.id, record)
            except Exception as e:
                logger.error(f"Error saving recording {record.id}: {e}")
        return record

    async def recording_history(self, limit: int = 10) -> List[RecordingRecord]:
        if self.authenticated and self.providers.records is not None:
            try:
                return await self.providers.records.list_for_account(self.identity.id, limit=limit)
            except Exception as e:
                logger.error(f"Error loading recordings: {e}")
        return list(reversed(self.recording.records))[:limit]

    async def summary_card(self, record_id: str) -> str:
        self.require(Feature.RECORDING)
        record = self.recording.find_record(record_id)
        if record is None:
            raise NotFoundError(f"Recording {record_id} not found")
        return await self._run("summary", self.providers.scripts.generate_summary_card(record))

    # ------------------------------------------------------------------

    def view(self) -> Dict[str, Any]:
        """Everything the frontend renders from"""
        return {
            "session": self.session.model_dump(mode="json"),
            "selected_jurisdiction": self.selected_jurisdiction,
            "active_tab": self.active_tab,
            "is_loading": self.is_loading,
            "error": self.error,
            "is_premium": self.is_premium(),
            "features": feature_gate.feature_access_map(self.subscription_tier),
            "tabs": self.tab_states(),
            "subscription": feature_gate.subscription_info(self.subscription_tier),
            "pending_checkout": self.pending_checkout.model_dump(mode="json") if self.pending_checkout else None,
        }

    def close(self) -> None:
        self.timer.stop()
        self._operations.cancel_all()
