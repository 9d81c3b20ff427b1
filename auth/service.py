"""
auth/service.py -- Auth Service: registration and login over the Credential Store.

register() and login() are the only two operations. Both raise core.errors
types; sqlalchemy failures are logged and re-raised as StorageError so the
API layer never sees a raw database exception.

Layer rule: no imports from api/, web/, or machines/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import User
from auth.store import UserStore
from auth.tokens import authenticate_user, create_access_token, hash_password
from core.errors import DuplicateUser, InvalidCredentials, StorageError, ValidationError

logger = logging.getLogger("medmachines.auth")


def _require(**fields: str | None) -> None:
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise ValidationError(fields=missing)


class AuthService:
    """Register users and authenticate login attempts.

    Usage:
        service = AuthService(UserStore())
        service.register("a@example.com", "secret")
        token = service.login("a@example.com", "secret")
    """

    def __init__(self, store: UserStore) -> None:
        self.store = store

    def register(self, email: str | None, password: str | None) -> str:
        """Create a user with a bcrypt hash of the password.

        Raises DuplicateUser if the email is taken. The existing user's hash is
        never touched on that path.
        """
        _require(email=email, password=password)
        try:
            if self.store.get_by_email(email) is not None:
                raise DuplicateUser()
            self.store.create_user(User(email=email, hashed_password=hash_password(password)))
        except IntegrityError as exc:
            # Lost the race against a concurrent registration of the same email.
            raise DuplicateUser() from exc
        except SQLAlchemyError as exc:
            logger.exception("Error registering user")
            raise StorageError("Failed to register user.") from exc
        logger.info("Registered user %s", email)
        return "User registered successfully"

    def login(self, email: str | None, password: str | None) -> str:
        """Return a signed access token for valid credentials.

        Unknown email and wrong password produce the same InvalidCredentials so
        the response does not reveal which emails are registered.
        """
        if not email or not password:
            raise InvalidCredentials()
        try:
            user = authenticate_user(self.store, email, password)
        except SQLAlchemyError as exc:
            logger.exception("Error logging in")
            raise StorageError("Failed to login.") from exc
        if user is None:
            logger.info("Failed login for %s", email)
            raise InvalidCredentials()
        return create_access_token(user.email)
