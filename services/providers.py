"""
Collaborator selection.

Each external collaborator has a live implementation and a static/mock one.
The choice is made once, at startup, from the configured credentials.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from backend.errors import ConfigurationError
from config.settings import PLAN_PREMIUM, PLAN_TRIAL, Settings
from services.billing_service import MockPaymentProvider, PaymentProvider, StripePaymentProvider
from services.generation_service import GenerationProvider, OpenAIGenerationProvider, StaticGenerationProvider
from services.guide_service import DatabaseGuideContent, GuideService
from services.identity_service import DatabaseIdentityProvider, IdentityProvider, MockIdentityProvider
from services.recording_service import DatabaseRecordArchive, RecordArchive
from services.script_service import ScriptService

logger = logging.getLogger(__name__)

# Env var -> settings attribute, checked at startup
REQUIRED_KEYS = {
    "DATABASE_URL": "database_url",
    "OPENAI_API_KEY": "openai_api_key",
    "STRIPE_SECRET_KEY": "stripe_secret_key",
    "STRIPE_PRICE_TRIAL": "stripe_price_trial",
    "STRIPE_PRICE_PREMIUM": "stripe_price_premium",
    "JWT_SECRET_KEY": "jwt_secret_key",
}


@dataclass
class Providers:
    identity: IdentityProvider
    payments: PaymentProvider
    generation: GenerationProvider
    scripts: ScriptService
    guides: GuideService
    records: Optional[RecordArchive] = None

    @classmethod
    def mocked(cls, frontend_url: Optional[str] = None) -> "Providers":
        """Fully static collaborators (development without credentials, tests)"""
        generation = StaticGenerationProvider()
        return cls(
            identity=MockIdentityProvider(),
            payments=MockPaymentProvider(frontend_url),
            generation=generation,
            scripts=ScriptService(generation),
            guides=GuideService(),
            records=None,
        )


def missing_keys(settings: Settings) -> List[str]:
    return [env_key for env_key, attr in REQUIRED_KEYS.items() if not getattr(settings, attr)]


def validate_config(settings: Settings) -> List[str]:
    """
    Report missing collaborator credentials.

    Raises:
        ConfigurationError: in production, when anything is missing
    """
    missing = missing_keys(settings)
    is_production = bool(settings.env and settings.env.lower() == "production")
    if missing and is_production:
        logger.error(f"Missing required environment variables: {missing}")
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")
    if missing:
        logger.warning(f"⚠️ Missing environment variables (using mock collaborators): {missing}")
    else:
        logger.info("🔐 All collaborator credentials loaded successfully")
    return missing


def build_providers(settings: Settings, session_factory=None) -> Providers:
    validate_config(settings)

    if settings.database_url:
        if session_factory is None:
            from database import AsyncSessionLocal
            session_factory = AsyncSessionLocal
        identity: IdentityProvider = DatabaseIdentityProvider(session_factory)
        guides = GuideService(content=DatabaseGuideContent(session_factory))
        records: Optional[RecordArchive] = DatabaseRecordArchive(session_factory)
    else:
        identity = MockIdentityProvider()
        guides = GuideService()
        records = None

    if settings.openai_api_key:
        generation: GenerationProvider = OpenAIGenerationProvider(settings.openai_api_key, settings.openai_model)
    else:
        generation = StaticGenerationProvider()

    if settings.stripe_secret_key:
        payments: PaymentProvider = StripePaymentProvider(
            settings.stripe_secret_key,
            {PLAN_TRIAL: settings.stripe_price_trial, PLAN_PREMIUM: settings.stripe_price_premium},
            settings.frontend_url,
        )
    else:
        payments = MockPaymentProvider(settings.frontend_url)

    logger.info(
        "Collaborators: identity=%s payments=%s generation=%s guides=%s",
        type(identity).__name__, type(payments).__name__, type(generation).__name__,
        "database" if guides.content else "static",
    )
    return Providers(
        identity=identity,
        payments=payments,
        generation=generation,
        scripts=ScriptService(generation),
        guides=guides,
        records=records,
    )
