"""
machines/models.py -- Domain dataclass for the Machine Record Store.

Pure data container with zero logic. The completeness rule lives in
machines/service.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class MachineRecord:
    """A stored description of one medical machine.

    machine_name is the category label (e.g. "Diagnostic Machines"),
    machine_type one of that category's types. Only purpose is mutable.

    id is None before the record is written. Afterwards it is the store's
    key rendered as an opaque string.
    """

    machine_name: str
    machine_type: str
    purpose: str
    id: Optional[str] = None
    created_at: str = ""  # ISO 8601, set by store on insert
