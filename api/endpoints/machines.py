"""
Machine endpoints.

Expose this host's identity and the registry of fleet machines.
"""

import logging
from typing import List

from fastapi import APIRouter

from core.host_info import get_machine_info
from core.machine_directory import get_machine_directory
from models.machine import Machine, MachineCreateRequest, MachineInfo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/machines", tags=["Machines"])


@router.get(
    "/name",
    response_model=MachineInfo,
    summary="Get This Machine's Identity",
    description="Hostname and first non-internal IPv4 address of the machine running the API.",
)
async def get_machine_name() -> MachineInfo:
    return get_machine_info()


@router.get(
    "",
    response_model=List[Machine],
    summary="List Machines",
)
async def list_machines() -> List[Machine]:
    return await get_machine_directory().list_all()


@router.post(
    "",
    response_model=Machine,
    status_code=201,
    summary="Register a Machine",
    description="""
    Register a machine so nginx files can reference it.

    The `localIpAddress` is matched against `proxy_pass` upstreams during
    reconciliation, and against this host's own address before scanning
    or generating.
    """,
)
async def create_machine(request: MachineCreateRequest) -> Machine:
    return await get_machine_directory().create(request)
