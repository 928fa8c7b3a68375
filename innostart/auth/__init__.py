"""Auth package: bearer-token verification and the current-user dependency."""

from innostart.auth.dependencies import get_current_user
from innostart.auth.tokens import decode_access_token

__all__ = ["decode_access_token", "get_current_user"]
