"""
Security utilities for auth form validation and client session ids
"""
import re
from typing import Dict, Optional

from backend.errors import ConfirmationMismatchError, ValidationError

# Same loose shape check the sign-in form applies: something@something.something
EMAIL_PATTERN = re.compile(r'^\S+@\S+\.\S+$')

MIN_PASSWORD_LENGTH = 6

SUPPORTED_LANGUAGES = ("en", "es")

# Client session ids are url-safe tokens; anything else is rejected before it
# reaches the state store (ids become file names / redis keys)
VALID_CLIENT_ID_PATTERN = re.compile(r'^[a-zA-Z0-9_-]{1,128}$')


def validate_email(email: Optional[str]) -> Optional[str]:
    """Return an error message for the email field, or None if it is valid"""
    if not email:
        return "Email is required"
    if not EMAIL_PATTERN.match(email):
        return "Email is invalid"
    return None


def validate_password(password: Optional[str]) -> Optional[str]:
    if not password:
        return "Password is required"
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return None


def validate_auth_form(
    email: Optional[str],
    password: Optional[str],
    confirm_password: Optional[str] = None,
    mode: str = "signin",
) -> None:
    """
    Validate the sign-in / sign-up form.

    Raises:
        ValidationError: with one message per failing field
        ConfirmationMismatchError: when only the password confirmation differs
    """
    errors: Dict[str, str] = {}

    email_error = validate_email(email)
    if email_error:
        errors["email"] = email_error

    password_error = validate_password(password)
    if password_error:
        errors["password"] = password_error

    if mode == "signup" and not confirm_password:
        errors["confirm_password"] = "Please confirm your password"

    if errors:
        raise ValidationError(errors)

    if mode == "signup" and password != confirm_password:
        raise ConfirmationMismatchError()


def normalize_language(language: Optional[str]) -> str:
    """Unsupported languages fall back to English"""
    if language and language.lower() in SUPPORTED_LANGUAGES:
        return language.lower()
    return "en"


def is_valid_client_id(client_id: Optional[str]) -> bool:
    return bool(client_id) and isinstance(client_id, str) and bool(VALID_CLIENT_ID_PATTERN.match(client_id))
