"""
Directory reconciler.

Scans a directory of nginx virtual-host files, parses each one and
registers the sites the registry does not know yet. Files are keyed by
their primary server name, so re-running a scan over an unchanged
directory classifies every previously new file as a duplicate.
"""

import logging
from pathlib import Path
from typing import Optional

from config import get_scan_dir_path
from core.config_manager.parser import parse_nginx_config
from core.errors import PreconditionError
from core.host_info import resolve_current_machine
from core.machine_directory import MachineDirectory, get_machine_directory
from core.site_registry import SiteRegistry, get_site_registry
from models.machine import Machine
from models.nginx_file import (
    DuplicateFileEntry,
    FileErrorEntry,
    NewFileEntry,
    NginxFile,
    ReconciliationReport,
)

logger = logging.getLogger(__name__)

# nginx's stock site, never registered
SKIPPED_FILE_NAMES = {"default"}


class DirectoryReconciler:
    """Classifies discovered nginx files as new, duplicate or erroneous."""

    def __init__(
        self,
        machine_directory: Optional[MachineDirectory] = None,
        site_registry: Optional[SiteRegistry] = None,
    ):
        self.machine_directory = machine_directory or get_machine_directory()
        self.site_registry = site_registry or get_site_registry()

    async def reconcile(self, directory: Optional[Path] = None) -> ReconciliationReport:
        """
        Scan a directory and register every file whose primary server name is new.

        Args:
            directory: Directory to scan. Uses NGINX_SCAN_DIR if not specified.

        Returns:
            ReconciliationReport with counts and per-file outcomes

        Raises:
            PreconditionError: If the directory cannot be listed or this host
                is not a registered machine
        """
        directory = Path(directory) if directory is not None else get_scan_dir_path()

        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise PreconditionError(
                f"Cannot read directory {directory}: {e.strerror or e}",
                error_type="directory_unreadable",
                field="directory",
                suggestion="Check NGINX_SCAN_DIR and the service user's permissions",
            ) from e

        info, nginx_host = await resolve_current_machine(self.machine_directory)

        report = ReconciliationReport(
            directory=str(directory),
            current_machine_name=info.machine_name,
            current_ip_address=info.local_ip_address,
            nginx_host_server_machine_id=nginx_host.id,
        )

        for path in entries:
            if path.name in SKIPPED_FILE_NAMES:
                continue

            report.scanned_count += 1
            try:
                await self._reconcile_file(path, directory, nginx_host, report)
            except Exception as e:
                logger.error(f"Error processing {path}: {e}")
                report.errors.append(FileErrorEntry(file_name=path.name, error=str(e)))

        report.new_count = len(report.new_entries)
        report.duplicate_count = len(report.duplicates)
        report.error_count = len(report.errors)

        logger.info(
            f"Scanned {report.scanned_count} file(s) in {directory}: "
            f"{report.new_count} new, {report.duplicate_count} duplicate, {report.error_count} error(s)"
        )
        return report

    async def _reconcile_file(
        self,
        path: Path,
        directory: Path,
        nginx_host: Machine,
        report: ReconciliationReport,
    ) -> None:
        facts = parse_nginx_config(path.read_text(encoding="utf-8"))

        if not facts.server_names:
            report.errors.append(FileErrorEntry(file_name=path.name, error="No server names found"))
            return

        app_host = None
        if facts.local_ip_address:
            app_host = await self.machine_directory.find_by_address(facts.local_ip_address)
            if app_host is None:
                logger.debug(f"No machine registered for upstream {facts.local_ip_address} in {path.name}")

        primary, *aliases = facts.server_names
        scanned = facts.model_dump()

        existing = await self.site_registry.find_by_primary_name(primary)
        if existing is not None:
            report.duplicates.append(
                DuplicateFileEntry(
                    file_name=path.name,
                    reason=f"Server name '{primary}' is already registered (id={existing.id})",
                    **scanned,
                )
            )
            return

        record = await self.site_registry.create(
            NginxFile(
                server_name=primary,
                additional_server_names=aliases,
                port_number=facts.listen_port or 0,
                app_host_server_machine_id=app_host.id if app_host else None,
                nginx_host_server_machine_id=nginx_host.id,
                framework=facts.framework,
                store_directory=str(directory),
            )
        )
        report.new_entries.append(NewFileEntry(file_name=path.name, record_id=record.id, **scanned))


# Singleton instance
_reconciler: Optional[DirectoryReconciler] = None


def get_directory_reconciler() -> DirectoryReconciler:
    """Get the global directory reconciler instance."""
    global _reconciler
    if _reconciler is None:
        _reconciler = DirectoryReconciler()
    return _reconciler
