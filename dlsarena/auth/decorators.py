"""Decorators for authenticated API routes."""

from functools import wraps

from flask import g

from dlsarena.errors import ForbiddenError, UnauthorizedError


def is_admin(user) -> bool:
    """Return True if the user document carries the admin flag."""
    return bool(user and user.get("isAdmin"))


def is_validator(user) -> bool:
    """Return True if the user may resolve disputes as a validator."""
    return bool(user and user.get("role") == "validator")


def login_required(f=None, admin_required=False, validator_required=False):
    """Reject the request unless a user was loaded from the bearer token.

    Usage:
    @login_required
    def protected_view():
        ...

    @login_required(admin_required=True)
    def admin_view():
        ...

    Admins pass the validator check as well.
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            user = g.get("user")
            if not user:
                raise UnauthorizedError()
            if admin_required and not is_admin(user):
                raise ForbiddenError("Administrator access is required.")
            if validator_required and not (is_validator(user) or is_admin(user)):
                raise ForbiddenError("Only validators can perform this action.")
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
