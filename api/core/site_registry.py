"""
Site registry service.

Persists registered nginx virtual hosts, one record per primary
server name. Records are only ever created whole or bulk deleted.
"""

import logging
import sqlite3
from datetime import datetime
from typing import Optional

from core.database import Database, deserialize_json, get_database, serialize_json
from core.errors import SiteRegistryError
from models.nginx_file import NginxFile

logger = logging.getLogger(__name__)


class SiteRegistry:
    """Registry of nginx files backed by the ``nginx_files`` table."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_database()

    def _row_to_nginx_file(self, row: dict) -> NginxFile:
        """Convert a database row to an NginxFile model."""
        return NginxFile(
            id=row["id"],
            server_name=row["server_name"],
            additional_server_names=deserialize_json(row["additional_server_names_json"]) or [],
            port_number=row["port_number"],
            app_host_server_machine_id=row["app_host_server_machine_id"],
            nginx_host_server_machine_id=row["nginx_host_server_machine_id"],
            framework=row["framework"],
            store_directory=row["store_directory"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def find_by_primary_name(self, server_name: str) -> Optional[NginxFile]:
        row = await self.db.fetch_one("SELECT * FROM nginx_files WHERE server_name = ?", (server_name,))
        return self._row_to_nginx_file(row) if row else None

    async def list_all(self) -> list[NginxFile]:
        rows = await self.db.fetch_all("SELECT * FROM nginx_files ORDER BY created_at, rowid")
        return [self._row_to_nginx_file(row) for row in rows]

    async def create(self, record: NginxFile) -> NginxFile:
        """
        Persist a new nginx file record.

        Raises:
            SiteRegistryError: If a record with the same primary server name exists.
        """
        try:
            await self.db.insert(
                "nginx_files",
                {
                    "id": record.id,
                    "server_name": record.server_name,
                    "additional_server_names_json": serialize_json(record.additional_server_names),
                    "port_number": record.port_number,
                    "app_host_server_machine_id": record.app_host_server_machine_id,
                    "nginx_host_server_machine_id": record.nginx_host_server_machine_id,
                    "framework": record.framework,
                    "store_directory": record.store_directory,
                    "created_at": record.created_at.isoformat(),
                    "updated_at": record.updated_at.isoformat(),
                },
            )
        except sqlite3.IntegrityError as e:
            raise SiteRegistryError(
                f"Nginx file for '{record.server_name}' is already registered",
                error_type="duplicate_server_name",
                field="serverName",
                suggestion="Clear the registry or choose a different primary server name",
            ) from e

        logger.info(f"Registered nginx file '{record.server_name}' (id={record.id})")
        return record

    async def delete_all(self) -> int:
        """Delete every nginx file record. Returns count deleted."""
        deleted = await self.db.delete_all("nginx_files")
        logger.info(f"Cleared {deleted} nginx file record(s)")
        return deleted


# Singleton instance
_site_registry: Optional[SiteRegistry] = None


def get_site_registry() -> SiteRegistry:
    """Get the global site registry instance."""
    global _site_registry
    if _site_registry is None:
        _site_registry = SiteRegistry()
    return _site_registry
