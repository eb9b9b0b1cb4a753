"""Bearer tokens for confirmation and cancellation links."""

import secrets

from .conf import get_token_bytes


def generate_token() -> str:
    """Return a URL-safe token from the OS CSPRNG.

    Tokens act as authorization secrets in patient-facing links, so they
    never come from the ``random`` module.
    """
    return secrets.token_urlsafe(get_token_bytes())
