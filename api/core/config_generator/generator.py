"""
NGINX configuration generator using Jinja2 templates.

Validates a site specification, renders the requested template with the
server names and the app host's upstream address, writes the file into
the chosen destination and registers it.
"""

import logging
import re
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from config import get_output_dir_path, get_template_dir_path
from core.errors import (
    DataIntegrityError,
    MachineNotFoundError,
    SiteRegistryError,
    SiteValidationError,
    TemplateNotFoundError,
    WriteFailureError,
)
from core.host_info import resolve_current_machine
from core.machine_directory import MachineDirectory, get_machine_directory
from core.site_registry import SiteRegistry, get_site_registry
from models.machine import Machine
from models.nginx_file import (
    DEFAULT_FRAMEWORK,
    GenerationResult,
    NginxFile,
    SaveDestination,
    SiteSpecification,
)

logger = logging.getLogger(__name__)

TEMPLATE_EXTENSION = ".txt"

MACHINE_ID_PATTERN = re.compile(r"^mch-[0-9a-f]{12}$")

# Host names and wildcards; the primary name also becomes the output file name
SERVER_NAME_PATTERN = re.compile(r"^[A-Za-z0-9*_.~-]+$")

# Checked in this order; names are the JSON field names reported to callers
REQUIRED_FIELDS = [
    ("template_file_name", "templateFileName"),
    ("server_names", "serverNames"),
    ("app_host_server_machine_id", "appHostServerMachineId"),
    ("port_number", "portNumber"),
    ("save_destination", "saveDestination"),
]


def _is_missing(value: Any) -> bool:
    # 0 and False count as present here and fail their own field check
    return value is None or value == ""


def _is_plain_name(value: str) -> bool:
    """True for a single path component without separators or whitespace."""
    return bool(value) and value not in (".", "..") and not re.search(r"[/\\\s]", value)


class TemplateGenerator:
    """
    Generates NGINX configuration files from .txt templates.

    Templates live in a single directory and are rendered with Jinja2.
    Available variables:

    - ``server_names``: all server names joined by spaces
    - ``server_name_list``: the server names as a list
    - ``local_ip_address``: the app host's IP address
    - ``port_number``: the upstream port
    """

    def __init__(
        self,
        template_dir: Optional[Path] = None,
        machine_directory: Optional[MachineDirectory] = None,
        site_registry: Optional[SiteRegistry] = None,
    ):
        """
        Initialize the generator.

        Args:
            template_dir: Path to template directory. Uses NGINX_TEMPLATE_DIR if not specified.
            machine_directory: Machine lookups. Uses the global instance if not specified.
            site_registry: Record storage. Uses the global instance if not specified.
        """
        self.template_dir = Path(template_dir) if template_dir else get_template_dir_path()
        self.machine_directory = machine_directory or get_machine_directory()
        self.site_registry = site_registry or get_site_registry()

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,  # NGINX configs don't need HTML escaping
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

        logger.info(f"TemplateGenerator initialized with templates from {self.template_dir}")

    async def generate(self, spec: SiteSpecification) -> GenerationResult:
        """
        Validate a site specification, write its nginx file and register it.

        An already registered primary name is rejected before any file is
        written. The file is written before the record is created; if the
        record cannot be stored afterwards the file stays on disk.

        Args:
            spec: Requested site

        Returns:
            GenerationResult with the written path and the stored record

        Raises:
            SiteValidationError: A field is missing or malformed
            MachineNotFoundError: The app host machine does not exist
            TemplateNotFoundError: The template is missing or not a .txt file
            PreconditionError: This host is not a registered machine
            DataIntegrityError: The app host has no IP address
            WriteFailureError: Rendering or writing the file failed
            SiteRegistryError: The primary name is already registered or the record could not be stored
        """
        self._validate_required(spec)
        template_file_name = self._validate_template_file_name(spec.template_file_name)
        server_names = self._validate_server_names(spec.server_names)
        app_host = await self._resolve_app_host(spec.app_host_server_machine_id)
        port_number = self._validate_port_number(spec.port_number)
        save_destination = self._validate_save_destination(spec.save_destination)
        template_path = self._resolve_template(template_file_name)

        _, nginx_host = await resolve_current_machine(self.machine_directory)

        if not app_host.local_ip_address:
            raise DataIntegrityError(
                f"Machine '{app_host.machine_name}' ({app_host.id}) has no local IP address",
                error_type="machine_missing_ip_address",
                field="appHostServerMachineId",
                suggestion="Set localIpAddress on the app host machine record",
            )

        existing = await self.site_registry.find_by_primary_name(server_names[0])
        if existing is not None:
            raise SiteRegistryError(
                f"Server name '{server_names[0]}' is already registered (id={existing.id})",
                error_type="duplicate_server_name",
                field="serverNames",
                suggestion="Use a different primary server name or clear the existing record",
            )

        output_dir = get_output_dir_path(save_destination.value)
        file_path = output_dir / self._output_file_name(server_names[0], save_destination)

        content = self._render(template_path, server_names, app_host.local_ip_address, port_number)
        self._write(file_path, content)

        primary, *aliases = server_names
        record = await self.site_registry.create(
            NginxFile(
                server_name=primary,
                additional_server_names=aliases,
                port_number=port_number,
                app_host_server_machine_id=app_host.id,
                nginx_host_server_machine_id=nginx_host.id,
                framework=DEFAULT_FRAMEWORK,
                store_directory=str(output_dir),
            )
        )

        logger.info(f"Generated {file_path} from {template_file_name} for {primary}")
        return GenerationResult(file_path=str(file_path), record=record)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _validate_required(self, spec: SiteSpecification) -> None:
        missing = [alias for name, alias in REQUIRED_FIELDS if _is_missing(getattr(spec, name))]
        if missing:
            raise SiteValidationError(
                f"Missing required field(s): {', '.join(missing)}",
                check="required_fields",
                field=missing[0],
                missing_fields=missing,
            )

    def _validate_template_file_name(self, value: Any) -> str:
        if not isinstance(value, str) or not _is_plain_name(value):
            raise SiteValidationError(
                "templateFileName must be a non-empty file name",
                check="template_file_name",
                field="templateFileName",
            )
        return value

    def _validate_server_names(self, value: Any) -> list[str]:
        if not isinstance(value, list) or not value:
            raise SiteValidationError(
                "serverNames must be a non-empty list",
                check="server_names",
                field="serverNames",
            )
        for name in value:
            if not isinstance(name, str) or not SERVER_NAME_PATTERN.fullmatch(name) or name in (".", ".."):
                raise SiteValidationError(
                    f"Invalid server name: {name!r}",
                    check="server_names",
                    field="serverNames",
                )
        return list(value)

    async def _resolve_app_host(self, value: Any) -> Machine:
        if not isinstance(value, str) or not MACHINE_ID_PATTERN.match(value):
            raise SiteValidationError(
                f"Invalid machine id: {value!r}",
                check="app_host_server_machine_id",
                field="appHostServerMachineId",
            )
        machine = await self.machine_directory.find_by_id(value)
        if machine is None:
            raise MachineNotFoundError(
                f"Machine '{value}' not found",
                error_type="machine_not_found",
                field="appHostServerMachineId",
                suggestion="List registered machines with GET /machines",
            )
        return machine

    def _validate_port_number(self, value: Any) -> int:
        port = None
        if isinstance(value, int) and not isinstance(value, bool):
            port = value
        elif isinstance(value, str) and value.isascii() and value.isdigit():
            port = int(value)

        if port is None or not 1 <= port <= 65535:
            raise SiteValidationError(
                "portNumber must be an integer between 1 and 65535",
                check="port_number",
                field="portNumber",
            )
        return port

    def _validate_save_destination(self, value: Any) -> SaveDestination:
        try:
            return SaveDestination(value)
        except (ValueError, TypeError):
            allowed = ", ".join(d.value for d in SaveDestination)
            raise SiteValidationError(
                f"saveDestination must be one of: {allowed}",
                check="save_destination",
                field="saveDestination",
            )

    def _resolve_template(self, template_file_name: str) -> Path:
        """Check the template is an existing .txt file in the template directory."""
        if not template_file_name.endswith(TEMPLATE_EXTENSION):
            raise TemplateNotFoundError(
                f"Template file must have {TEMPLATE_EXTENSION} extension",
                error_type="template_not_found",
                field="templateFileName",
            )

        template_path = self.template_dir / template_file_name
        if not template_path.exists():
            raise TemplateNotFoundError(
                f"Template file not found: {template_file_name}",
                error_type="template_not_found",
                field="templateFileName",
                suggestion=f"Add the template to {self.template_dir}",
            )
        if not template_path.is_file():
            raise TemplateNotFoundError(
                f"Template path is not a file: {template_file_name}",
                error_type="template_not_found",
                field="templateFileName",
            )
        return template_path

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    @staticmethod
    def _output_file_name(primary: str, save_destination: SaveDestination) -> str:
        # conf.d only includes *.conf
        if save_destination == SaveDestination.CONF_D:
            return f"{primary}.conf"
        return primary

    def _render(self, template_path: Path, server_names: list[str], local_ip_address: str, port_number: int) -> str:
        try:
            template = self.env.get_template(template_path.name)
            return template.render(
                server_names=" ".join(server_names),
                server_name_list=server_names,
                local_ip_address=local_ip_address,
                port_number=port_number,
            )
        except TemplateError as e:
            raise WriteFailureError(
                f"Failed to render template {template_path.name}: {e}",
                error_type="template_render_failed",
                field="templateFileName",
            ) from e

    def _write(self, file_path: Path, content: str) -> None:
        try:
            with open(file_path, "x", encoding="utf-8") as f:
                f.write(content)
        except FileExistsError as e:
            raise WriteFailureError(
                f"File already exists: {file_path}",
                error_type="file_exists",
                suggestion="Remove the existing file or choose a different primary server name",
            ) from e
        except OSError as e:
            raise WriteFailureError(
                f"Failed to write {file_path}: {e.strerror or e}",
                error_type="write_failed",
                suggestion="Check the output directory exists and is writable",
            ) from e


# Singleton instance
_template_generator: Optional[TemplateGenerator] = None


def get_template_generator() -> TemplateGenerator:
    """
    Get the global template generator instance.

    Returns:
        TemplateGenerator singleton instance
    """
    global _template_generator
    if _template_generator is None:
        _template_generator = TemplateGenerator()
    return _template_generator
