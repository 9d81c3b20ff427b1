"""
API request and response models for MedMachines REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in machines/models.py and
auth/models.py, which own the internal domain representation. Route handlers
map between the two.

Wire names are camelCase (machineName, machineType). _CamelModel generates
the aliases; populate_by_name lets Python code use the snake_case names.

Request models accept missing fields as None: presence checks belong to the
services so that a missing field is reported as a domain ValidationError
rather than a schema error.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from machines.models import MachineRecord

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Machine request models
# ---------------------------------------------------------------------------


class MachineCreate(_CamelModel):
    """Request body for POST /api/machines."""

    machine_name: Optional[str] = Field(default=None, max_length=255)
    machine_type: Optional[str] = Field(default=None, max_length=255)
    purpose: Optional[str] = Field(default=None, max_length=5000)


class MachinePurposeUpdate(_CamelModel):
    """Request body for PUT /api/machines/{id}. Only purpose is mutable."""

    purpose: Optional[str] = Field(default=None, max_length=5000)


# ---------------------------------------------------------------------------
# Machine response models
# ---------------------------------------------------------------------------


class MachineResponse(_CamelModel):
    """One stored machine record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    machine_name: str
    machine_type: str
    purpose: str

    @classmethod
    def from_record(cls, record: MachineRecord) -> "MachineResponse":
        """Build the transport shape from the domain dataclass."""
        return cls(
            id=record.id,
            machine_name=record.machine_name,
            machine_type=record.machine_type,
            purpose=record.purpose,
        )


class MessageResponse(BaseModel):
    """Confirmation body for writes that return no record."""

    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Request body for POST /api/register and POST /api/login.

    Passwords are compared exactly as sent, so no whitespace stripping here.
    """

    email: Optional[str] = Field(default=None, max_length=320)
    password: Optional[str] = Field(default=None, max_length=255)


class LoginResponse(BaseModel):
    """Response body for POST /api/login."""

    model_config = ConfigDict(frozen=True)

    message: str = "Login successful"
    token: str
    token_type: str = "bearer"  # noqa: S105 -- OAuth token type, not a password
    expires_in: int


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
