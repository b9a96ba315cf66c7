"""
Authorization context for admin routes

Identity is established upstream by the auth provider and forwarded in the
X-User-Email header. The context is built per request and passed explicitly
to the endpoints that need it.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import Depends, Header, HTTPException

from codequiz import state


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    email: Optional[str]
    is_admin: bool = False

    @property
    def is_authenticated(self) -> bool:
        return bool(self.email)


def build_auth_context(email: Optional[str], admin_emails: Iterable[str]) -> AuthContext:
    clean = (email or "").strip().lower() or None
    allowed = {e.strip().lower() for e in admin_emails}
    return AuthContext(email=clean, is_admin=bool(clean) and clean in allowed)


async def get_auth_context(x_user_email: Optional[str] = Header(default=None)) -> AuthContext:
    return build_auth_context(x_user_email, state.SETTINGS.admin_emails)


async def require_admin(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Reject unauthenticated (401) and non-listed (403) callers"""
    if not auth.is_authenticated:
        raise HTTPException(status_code=401, detail="Sign in required")
    if not auth.is_admin:
        logger.warning(f"🚫 Admin access denied for {auth.email}")
        raise HTTPException(status_code=403, detail="Admin access required")
    return auth
