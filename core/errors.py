"""
core/errors.py -- Domain error taxonomy shared by every layer.

Services raise these; api/main.py maps each class to an HTTP status and the
standard ErrorResponse envelope, and web/routes.py turns them into visible
messages. Stores never raise them -- they let sqlalchemy errors bubble up and
the service layer translates those into StorageError.

    MachineRegistryError
      ValidationError       missing required field           -> 400
      DuplicateUser         email already registered         -> 400
      InvalidCredentials    unknown email or wrong password  -> 401
      NotFound              unknown or malformed identifier  -> 404
      StorageError          persistence failure              -> 500

Layer rule: no imports from api/, web/, auth/, or machines/.
"""

from __future__ import annotations


class MachineRegistryError(Exception):
    """Base class. code is the machine-readable value placed in error.code."""

    code = "error"
    default_message = "Request failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MachineRegistryError):
    code = "validation_error"
    default_message = "Required fields are missing."

    def __init__(self, message: str | None = None, fields: list[str] | None = None) -> None:
        self.fields = fields or []
        if message is None and self.fields:
            message = f"Missing required field(s): {', '.join(self.fields)}."
        super().__init__(message)


class NotFound(MachineRegistryError):
    code = "not_found"
    default_message = "Machine not found."


class DuplicateUser(MachineRegistryError):
    code = "duplicate_user"
    default_message = "User already exists."


class InvalidCredentials(MachineRegistryError):
    code = "invalid_credentials"
    default_message = "Invalid email or password."


class StorageError(MachineRegistryError):
    """Persistence failure. The message is safe to show; the cause is only logged."""

    code = "storage_error"
    default_message = "A storage error occurred."
