"""
Rate limiting for mutating routes.

Keyed on the Authorization header, so each session token gets its own
budget. The limit string is read from config on every request.
"""
from slowapi import Limiter

from app.core import config
from app.features.users.dependencies import get_authorization_header


limiter = Limiter(key_func=get_authorization_header)


def mutation_limit() -> str:
    return config.MUTATION_RATE_LIMIT
