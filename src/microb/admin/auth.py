"""
Admin authentication.

Passwords are stored as werkzeug PBKDF2 hashes
(``pbkdf2:sha256:<iterations>$<salt>$<hex digest>``). A successful login
yields an AdminSession issued by the AdminGate; the gate remembers the tokens
it issued, so a session built by hand is never accepted. Nothing is kept in
global state.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime

from werkzeug.security import check_password_hash, generate_password_hash

from microb.core.errors import AuthorizationError

DEFAULT_METHOD = "pbkdf2:sha256"


def hash_password(password: str, method: str = DEFAULT_METHOD) -> str:
    """Hash a password for storage in config.yaml."""
    if not password:
        raise ValueError("Password must not be empty")
    return generate_password_hash(password, method=method)


def verify_password(password: str, stored: str | None) -> bool:
    """Check a password against a stored hash; malformed hashes never match."""
    if not isinstance(stored, str) or not stored:
        return False
    try:
        return check_password_hash(stored, password)
    except (TypeError, ValueError):
        return False


@dataclass(frozen=True)
class AdminSession:
    """A login issued by an AdminGate."""

    token: str
    gate: AdminGate = field(repr=False, compare=False)
    started_at: datetime = field(default_factory=datetime.now, compare=False)

    @property
    def active(self) -> bool:
        return self.gate.is_active(self)


class AdminGate:
    """Authorises admin sessions against the configured password hash."""

    def __init__(self, password_hash: str | None):
        self.password_hash = password_hash
        self._issued: set[str] = set()

    @property
    def configured(self) -> bool:
        return bool(self.password_hash)

    def login(self, password: str) -> AdminSession:
        """Exchange a password for a session.

        Raises:
            AuthorizationError: If no password is configured or it does not match
        """
        if not self.password_hash:
            raise AuthorizationError(
                "No admin password configured. Run 'microb config passwd' first."
            )
        if not verify_password(password, self.password_hash):
            raise AuthorizationError("Invalid password")
        token = secrets.token_hex(16)
        self._issued.add(token)
        return AdminSession(token=token, gate=self)

    def logout(self, session: AdminSession) -> None:
        self._issued.discard(session.token)

    def is_active(self, session: object) -> bool:
        return (
            isinstance(session, AdminSession)
            and session.gate is self
            and session.token in self._issued
        )
