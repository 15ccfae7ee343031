"""
Pydantic models for registered nginx files, parser output,
reconciliation reports and template generation.

All models serialize with camelCase field names so the HTTP layer
maps each one 1:1 to a JSON object.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Optional, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models.machine import Machine

DEFAULT_FRAMEWORK = "ExpressJS"
STATIC_FRAMEWORK = "Next.js / Python"


class SaveDestination(str, Enum):
    """Where a generated nginx file is written."""
    SITES_AVAILABLE = "sites-available"
    CONF_D = "conf.d"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ParsedConfigFacts(_CamelModel):
    """Facts extracted from the text of one nginx file."""

    server_names: List[str] = Field(
        default_factory=list,
        description="server_name values, deduplicated in first-occurrence order"
    )
    listen_port: Optional[int] = Field(None, description="Port of the first proxy_pass upstream")
    local_ip_address: Optional[str] = Field(None, description="IPv4 of the first proxy_pass upstream")
    framework: str = Field(default=DEFAULT_FRAMEWORK, description="Inferred application framework")


class NginxFile(_CamelModel):
    """A registered virtual host, keyed by its primary server name."""

    id: str = Field(default_factory=lambda: f"ngx-{uuid.uuid4().hex[:12]}")
    server_name: str = Field(..., min_length=1, description="Primary server name")
    additional_server_names: List[str] = Field(
        default_factory=list,
        description="Remaining server_name aliases, in order"
    )
    port_number: int = Field(
        default=0,
        ge=0,
        le=65535,
        description="Upstream port (0 when the file had no recognizable proxy_pass)"
    )
    app_host_server_machine_id: Optional[str] = Field(
        None,
        description="Machine running the proxied application"
    )
    nginx_host_server_machine_id: str = Field(..., description="Machine holding the nginx file")
    framework: Optional[str] = Field(None, description="Framework label (not authoritative)")
    store_directory: Optional[str] = Field(None, description="Directory containing the file")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class NginxFileDetail(NginxFile):
    """NginxFile with its machine references expanded."""

    app_host_server_machine: Optional[Machine] = None
    nginx_host_server_machine: Optional[Machine] = None


# =============================================================================
# Reconciliation
# =============================================================================


class ScannedFileEntry(ParsedConfigFacts):
    """Parsed facts for one file found during a directory scan."""

    file_name: str


class NewFileEntry(ScannedFileEntry):
    record_id: str = Field(..., description="Id of the created NginxFile")


class DuplicateFileEntry(ScannedFileEntry):
    reason: str


class FileErrorEntry(_CamelModel):
    file_name: str
    error: str


class ReconciliationReport(_CamelModel):
    """Outcome of scanning one directory against the site registry."""

    directory: str
    current_machine_name: str
    current_ip_address: str
    nginx_host_server_machine_id: str
    scanned_count: int = 0
    new_count: int = 0
    duplicate_count: int = 0
    error_count: int = 0
    new_entries: List[NewFileEntry] = Field(default_factory=list)
    duplicates: List[DuplicateFileEntry] = Field(default_factory=list)
    errors: List[FileErrorEntry] = Field(default_factory=list)


class ScanRequest(_CamelModel):
    """Optional override of the directory to scan."""

    directory: Optional[str] = None


# =============================================================================
# Template generation
# =============================================================================


class SiteSpecification(_CamelModel):
    """
    Request to generate a new nginx file from a template.

    Fields accept any value; the generator validates them in a fixed
    order and reports the first failing check.
    """

    template_file_name: Optional[Any] = None
    server_names: Optional[Any] = None
    app_host_server_machine_id: Optional[Any] = None
    port_number: Optional[Any] = None
    save_destination: Optional[Any] = None


class GenerationResult(_CamelModel):
    file_path: str
    record: NginxFile


class ClearResult(_CamelModel):
    deleted_count: int
