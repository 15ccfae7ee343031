"""
NGINX file endpoints.

REST API endpoints for listing registered nginx files, reconciling a
directory of existing files against the registry, generating new files
from templates and clearing the registry.
"""

import logging
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Body, HTTPException

from core.config_generator import get_template_generator
from core.errors import (
    NginxRegistryError,
    NotFoundError,
    PreconditionError,
    SiteRegistryError,
    SiteValidationError,
)
from core.machine_directory import get_machine_directory
from core.reconciler import get_directory_reconciler
from core.site_registry import get_site_registry
from models.nginx_file import (
    ClearResult,
    GenerationResult,
    NginxFileDetail,
    ReconciliationReport,
    ScanRequest,
    SiteSpecification,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/nginx", tags=["NGINX Files"])


def _handle_registry_error(e: NginxRegistryError) -> HTTPException:
    """Convert registry errors to appropriate HTTP exceptions."""
    if isinstance(e, SiteValidationError):
        status_code = 400
    elif isinstance(e, NotFoundError):
        status_code = 404
    elif isinstance(e, SiteRegistryError):
        status_code = 409
    elif isinstance(e, PreconditionError):
        status_code = 412
    else:
        status_code = 500
    return HTTPException(status_code=status_code, detail=e.to_detail())


@router.get(
    "",
    response_model=List[NginxFileDetail],
    summary="List Registered NGINX Files",
    description="""
    Retrieve every registered nginx file with its app host and nginx host
    machines expanded.

    **Safe Operation**: This is a read-only operation.
    """,
)
async def list_nginx_files() -> List[NginxFileDetail]:
    registry = get_site_registry()
    machine_directory = get_machine_directory()

    machines = {m.id: m for m in await machine_directory.list_all()}
    records = await registry.list_all()

    return [
        NginxFileDetail(
            **record.model_dump(),
            app_host_server_machine=machines.get(record.app_host_server_machine_id),
            nginx_host_server_machine=machines.get(record.nginx_host_server_machine_id),
        )
        for record in records
    ]


@router.post(
    "/scan-nginx-dir",
    response_model=ReconciliationReport,
    summary="Reconcile NGINX Directory",
    description="""
    Scan a directory of nginx files and register every site not yet known.

    Each file is parsed for `server_name`, the first `proxy_pass` upstream
    and a framework hint. The first server name is the registry key:

    - **new**: no record with that name exists, a record is created
    - **duplicate**: a record exists, nothing is written
    - **error**: the file has no server names or could not be processed

    One bad file never aborts the scan. Running the scan again over an
    unchanged directory reports every previously new file as a duplicate.

    The `default` file is always skipped.
    """,
    responses={
        412: {"description": "Directory unreadable or this host is not a registered machine"},
    },
)
async def scan_nginx_dir(request: Optional[ScanRequest] = Body(default=None)) -> ReconciliationReport:
    directory = Path(request.directory) if request and request.directory else None

    try:
        return await get_directory_reconciler().reconcile(directory)
    except NginxRegistryError as e:
        logger.warning(f"Reconciliation aborted: {e.message}")
        raise _handle_registry_error(e)


@router.post(
    "/create-config-file",
    response_model=GenerationResult,
    status_code=201,
    summary="Generate NGINX File From Template",
    description="""
    Render a `.txt` template with the given server names, the app host's IP
    address and the port, write it to `sites-available` or `conf.d`, and
    register the new site.

    Validation stops at the first failing check and reports its field.
    The file is only registered after it has been written.
    """,
    responses={
        400: {"description": "A field is missing or malformed"},
        404: {"description": "App host machine or template not found"},
        409: {"description": "Primary server name already registered"},
        412: {"description": "This host is not a registered machine"},
        500: {"description": "App host has no IP address, or the file could not be written"},
    },
)
async def create_config_file(spec: SiteSpecification) -> GenerationResult:
    try:
        return await get_template_generator().generate(spec)
    except NginxRegistryError as e:
        logger.warning(f"Config file generation failed ({e.error_type}): {e.message}")
        raise _handle_registry_error(e)


@router.delete(
    "/clear",
    response_model=ClearResult,
    summary="Clear Registered NGINX Files",
    description="Delete every registered nginx file record. Files on disk are not touched.",
)
async def clear_nginx_files() -> ClearResult:
    deleted = await get_site_registry().delete_all()
    return ClearResult(deleted_count=deleted)
