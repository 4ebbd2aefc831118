"""Admin surface: authentication and dashboard actions."""

from microb.admin.auth import AdminGate, AdminSession, hash_password, verify_password
from microb.admin.dashboard import ActionResult, Dashboard

__all__ = [
    "ActionResult",
    "AdminGate",
    "AdminSession",
    "Dashboard",
    "hash_password",
    "verify_password",
]
