"""
auth/models.py -- Domain dataclass for the Credential Store.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in machines/models.py -- dataclasses own domain shape; stores and services do
the work.

Layer rule: no imports from api/, web/, or machines/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered identity. email is the unique key.

    Users are created on registration and never updated or deleted.
    hashed_password is a bcrypt hash; the plaintext is never stored.
    """

    email: str
    hashed_password: str
    created_at: str | None = None
