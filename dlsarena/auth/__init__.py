"""Bearer-token authentication helpers."""

from .decorators import login_required
from .tokens import load_user_from_token

__all__ = ["login_required", "load_user_from_token"]
