"""Request-scoped dependencies: caller identity and cart-operation throttling.

Authentication happens upstream; the authenticating proxy forwards the
caller as ``X-User-Id`` (and ``X-User-Role`` for staff).
"""

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

from ordering.errors import RateLimited, Unauthorized
from ratelimit import get_rate_limiter

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def current_user(
    x_user_id: str | None = Header(default=None),
    x_user_role: str = Header(default="customer"),
) -> CurrentUser:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return CurrentUser(id=x_user_id, role=x_user_role)


def require_admin(user: CurrentUser = Depends(current_user)) -> CurrentUser:
    if not user.is_admin:
        raise Unauthorized("Admin access required", role=user.role)
    return user


def cart_rate_limit(user: CurrentUser = Depends(current_user)) -> CurrentUser:
    """Count one cart operation against the caller's window."""
    result = get_rate_limiter().hit(f"cart:{user.id}")
    if not result.allowed:
        raise RateLimited("Too many cart operations. Please slow down.", retryAfter=round(result.reset_in))
    return user
