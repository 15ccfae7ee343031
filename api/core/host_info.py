"""
Identity of the machine this process runs on.

The local IP address is what ties this host to its Machine record,
so both reconciliation and generation resolve it before doing work.
"""

import ipaddress
import logging
import socket

import psutil

from config import settings
from core.errors import PreconditionError
from core.machine_directory import MachineDirectory
from models.machine import Machine, MachineInfo

logger = logging.getLogger(__name__)

FALLBACK_IP_ADDRESS = "127.0.0.1"


def _first_external_ipv4() -> str | None:
    """Return the first non-loopback IPv4 address across all interfaces."""
    for interface_name, addresses in psutil.net_if_addrs().items():
        for address in addresses:
            if address.family != socket.AF_INET:
                continue
            if ipaddress.ip_address(address.address).is_loopback:
                continue
            logger.debug(f"Using {address.address} from interface {interface_name}")
            return address.address
    return None


def get_machine_info() -> MachineInfo:
    """
    Resolve this machine's hostname and local IP address.

    HOST_IP_ADDRESS takes precedence over interface detection; with no
    external interface the loopback address is returned.
    """
    local_ip_address = settings.host_ip_address or _first_external_ipv4() or FALLBACK_IP_ADDRESS
    return MachineInfo(machine_name=socket.gethostname(), local_ip_address=local_ip_address)


async def resolve_current_machine(machine_directory: MachineDirectory) -> tuple[MachineInfo, Machine]:
    """
    Look up the Machine record for this host.

    Raises:
        PreconditionError: If no machine is registered with this host's address.
    """
    info = get_machine_info()
    machine = await machine_directory.find_by_address(info.local_ip_address)
    if machine is None:
        raise PreconditionError(
            f"This host ({info.machine_name}, {info.local_ip_address}) is not registered as a machine",
            error_type="host_not_registered",
            suggestion="Register this machine with POST /machines before scanning or generating",
        )
    return info, machine
