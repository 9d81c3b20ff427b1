"""
api/routes/machines.py -- Machine record routes for the MedMachines REST API.

Routes:
  GET    /api/machines                   -- complete records, store order
  POST   /api/machines                   -- create; 201 with the stored record
  GET    /api/machines/{machine_id}      -- one record; 404 if absent
  PUT    /api/machines/{machine_id}      -- replace purpose; 404 if absent
  DELETE /api/machines/{machine_id}      -- remove; 404 if absent
  GET    /api/treatments/{machine_type}  -- every record of one type (unfiltered)

Handlers only extract parameters and call MachineService. Domain errors
(ValidationError, NotFound, StorageError) propagate to the exception handlers
in api/main.py, which own the status code mapping.

machine_id is taken as a plain string; MachineService maps it to the store key
and raises NotFound for anything malformed.
"""

from fastapi import APIRouter, Depends, Request

from api.models import MachineCreate, MachinePurposeUpdate, MachineResponse, MessageResponse
from auth.dependencies import require_api_token
from machines.service import MachineService

# Open unless REQUIRE_API_AUTH=true; see auth.dependencies.require_api_token.
router = APIRouter(dependencies=[Depends(require_api_token)])


def _service(request: Request) -> MachineService:
    return request.app.state.machine_service


@router.get("/machines", response_model=list[MachineResponse])
def list_machines(request: Request) -> list[MachineResponse]:
    """Return every record whose category, type and purpose are all set."""
    return [MachineResponse.from_record(r) for r in _service(request).list_all()]


@router.post("/machines", response_model=MachineResponse, status_code=201)
def create_machine(request: Request, body: MachineCreate) -> MachineResponse:
    """Create a record from {machineName, machineType, purpose}."""
    record = _service(request).create(body.machine_name, body.machine_type, body.purpose)
    return MachineResponse.from_record(record)


@router.get("/machines/{machine_id}", response_model=MachineResponse)
def get_machine(request: Request, machine_id: str) -> MachineResponse:
    return MachineResponse.from_record(_service(request).get_by_id(machine_id))


@router.put("/machines/{machine_id}", response_model=MessageResponse)
def update_machine(request: Request, machine_id: str, body: MachinePurposeUpdate) -> MessageResponse:
    """Replace the purpose field only."""
    return MessageResponse(message=_service(request).update(machine_id, body.purpose))


@router.delete("/machines/{machine_id}", response_model=MessageResponse)
def delete_machine(request: Request, machine_id: str) -> MessageResponse:
    return MessageResponse(message=_service(request).delete(machine_id))


@router.get("/treatments/{machine_type}", response_model=list[MachineResponse])
def list_treatments(request: Request, machine_type: str) -> list[MachineResponse]:
    """Return all records of one machine type, including incomplete ones."""
    return [MachineResponse.from_record(r) for r in _service(request).list_by_type(machine_type)]
