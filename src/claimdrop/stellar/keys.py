"""Account address and secret helpers."""

from __future__ import annotations

from stellar_sdk import StrKey

SECRET_PLACEHOLDER = "[SECRET]"


def is_valid_address(address: str) -> bool:
    """True for a checksummed ed25519 account id (G...)."""
    if not isinstance(address, str):
        return False
    return StrKey.is_valid_ed25519_public_key(address)


def scrub_secret(text: str, secret: str) -> str:
    """Replace every occurrence of the signing secret in outward-facing text."""
    if not secret:
        return text
    return text.replace(secret, SECRET_PLACEHOLDER)
