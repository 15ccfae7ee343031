"""
Pydantic models for fleet machines.

A machine is a physical or virtual host that either runs proxied
applications, runs nginx, or both. Machines are joined to discovered
nginx files by their local IP address.
"""

import uuid
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MACHINE_ID_PREFIX = "mch-"


def new_machine_id() -> str:
    return f"{MACHINE_ID_PREFIX}{uuid.uuid4().hex[:12]}"


class Machine(BaseModel):
    """A registered host in the fleet."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=new_machine_id, description="Machine identifier")
    machine_name: str = Field(..., min_length=1, description="Display name (usually the hostname)")
    url_for_404_api: Optional[str] = Field(None, description="Base URL of the machine's API")
    local_ip_address: Optional[str] = Field(
        None,
        description="IPv4 address used to match proxy_pass upstreams to this machine"
    )
    user_home_dir: Optional[str] = Field(None, description="Home directory of the service user")
    nginx_storage_path_options: List[str] = Field(
        default_factory=list,
        description="Candidate directories for generated nginx files"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class MachineCreateRequest(BaseModel):
    """Request to register a machine."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    machine_name: str = Field(..., min_length=1, max_length=255)
    url_for_404_api: Optional[str] = None
    local_ip_address: Optional[str] = Field(
        None,
        pattern=r"^(\d{1,3}\.){3}\d{1,3}$",
        description="IPv4 address"
    )
    user_home_dir: Optional[str] = None
    nginx_storage_path_options: List[str] = Field(default_factory=list)


class MachineInfo(BaseModel):
    """Identity of the machine this process runs on."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    machine_name: str = Field(..., description="Hostname of this machine")
    local_ip_address: str = Field(..., description="First non-internal IPv4 address")
