"""
Auth Service - Local identity session.

Stands in for a hosted authentication provider: it only tracks which user is
signed in and tells interested parties (the stores) when that changes. There
are no passwords; the user id is derived deterministically from the email so
the same email always maps to the same rows.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Callable


logger = logging.getLogger(__name__)

# Namespace for deriving stable user ids from emails
USER_NAMESPACE = uuid.UUID("6f1c8a52-3b7e-4d0a-9a63-2f4e1b7c9d10")


@dataclass(frozen=True)
class User:
    """Signed-in identity."""
    id: str
    email: str


def user_for_email(email: str) -> User:
    """Build the identity for an email address (case-insensitive)."""
    email = email.strip().lower()
    if not email:
        raise ValueError("Email is required")
    return User(id=str(uuid.uuid5(USER_NAMESPACE, email)), email=email)


AuthListener = Callable[[User | None], None]


class AuthSession:
    """
    Holds the current user and notifies listeners on sign-in/sign-out.

    Usage:
        auth = AuthSession()
        auth.subscribe(store.bind_user)
        auth.sign_in("me@example.com")
    """

    def __init__(self):
        self._user: User | None = None
        self._listeners: list[AuthListener] = []

    @property
    def user(self) -> User | None:
        """Current user, or None when signed out."""
        return self._user

    def subscribe(self, listener: AuthListener) -> None:
        """Register a listener; it is called immediately with the current user."""
        self._listeners.append(listener)
        listener(self._user)

    def sign_in(self, email: str) -> User:
        """Sign in as the given email and notify listeners."""
        user = user_for_email(email)
        if self._user != user:
            self._user = user
            logger.info(f"Signed in as {user.email}")
            self._notify()
        return user

    def sign_out(self) -> None:
        """Forget the current user and notify listeners."""
        if self._user is None:
            return
        logger.info(f"Signed out {self._user.email}")
        self._user = None
        self._notify()

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self._user)
