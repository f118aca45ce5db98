"""
Configuration settings for the application
"""
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Per-client state snapshots (file store fallback when Redis is not configured)
STATE_DIR = Path("./state")

# Plan IDs understood by the payment collaborator
PLAN_TRIAL = "price_trial"
PLAN_PREMIUM = "price_premium_monthly"

TRIAL_DAYS = 7


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,  # Allow both field name and alias
        extra="ignore",
    )

    # Session cookie signing
    jwt_secret_key: Optional[str] = Field(default=None, alias="JWT_SECRET_KEY")

    # Stripe billing configuration
    stripe_secret_key: Optional[str] = Field(default=None, alias="STRIPE_SECRET_KEY")
    stripe_price_trial: Optional[str] = Field(default=None, alias="STRIPE_PRICE_TRIAL")
    stripe_price_premium: Optional[str] = Field(default=None, alias="STRIPE_PRICE_PREMIUM")

    # Generative text
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-3.5-turbo", alias="OPENAI_MODEL")

    # Infrastructure configuration
    # Unset DATABASE_URL means accounts, guide content and the record archive are mocked
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    state_dir: Path = Field(default=STATE_DIR, alias="STATE_DIR")

    # In-memory client sessions (evicted stores reload from their snapshot)
    max_client_sessions: int = Field(default=1000, alias="MAX_CLIENT_SESSIONS")
    session_idle_seconds: float = Field(default=3600.0, alias="SESSION_IDLE_SECONDS")

    # Frontend configuration
    frontend_url: Optional[str] = Field(default="http://localhost:5173", alias="FRONTEND_URL")

    # Environment configuration
    env: Optional[str] = Field(default="development", alias="ENV")


# Instantiate settings object
settings = Settings()

# Determine if we're in production mode
IS_PRODUCTION = bool(settings.env and settings.env.lower() == "production")
