"""
Machine directory service.

Lookup and registration of fleet machines. Discovered nginx files are
joined to machines through their local IP address.
"""

import logging
from datetime import datetime
from typing import Optional

from core.database import Database, deserialize_json, get_database, serialize_json
from models.machine import Machine, MachineCreateRequest

logger = logging.getLogger(__name__)


class MachineDirectory:
    """Registry of known machines backed by the ``machines`` table."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_database()

    def _row_to_machine(self, row: dict) -> Machine:
        """Convert a database row to a Machine model."""
        return Machine(
            id=row["id"],
            machine_name=row["machine_name"],
            url_for_404_api=row["url_for_404_api"],
            local_ip_address=row["local_ip_address"],
            user_home_dir=row["user_home_dir"],
            nginx_storage_path_options=deserialize_json(row["nginx_storage_path_options_json"]) or [],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def find_by_id(self, machine_id: str) -> Optional[Machine]:
        row = await self.db.fetch_one("SELECT * FROM machines WHERE id = ?", (machine_id,))
        return self._row_to_machine(row) if row else None

    async def find_by_address(self, local_ip_address: str) -> Optional[Machine]:
        """
        Find the machine registered with an IP address.

        Addresses are not unique in the table; when several machines share
        one, the earliest registered machine is returned.
        """
        rows = await self.db.fetch_all(
            "SELECT * FROM machines WHERE local_ip_address = ? ORDER BY created_at, rowid",
            (local_ip_address,),
        )
        if not rows:
            return None
        if len(rows) > 1:
            logger.warning(
                f"{len(rows)} machines share address {local_ip_address}; using {rows[0]['id']}"
            )
        return self._row_to_machine(rows[0])

    async def list_all(self) -> list[Machine]:
        rows = await self.db.fetch_all("SELECT * FROM machines ORDER BY created_at, rowid")
        return [self._row_to_machine(row) for row in rows]

    async def create(self, request: MachineCreateRequest) -> Machine:
        """Register a new machine."""
        machine = Machine(**request.model_dump())

        await self.db.insert(
            "machines",
            {
                "id": machine.id,
                "machine_name": machine.machine_name,
                "url_for_404_api": machine.url_for_404_api,
                "local_ip_address": machine.local_ip_address,
                "user_home_dir": machine.user_home_dir,
                "nginx_storage_path_options_json": serialize_json(machine.nginx_storage_path_options),
                "created_at": machine.created_at.isoformat(),
                "updated_at": machine.updated_at.isoformat(),
            },
        )

        logger.info(f"Registered machine '{machine.machine_name}' (id={machine.id}, ip={machine.local_ip_address})")
        return machine


# Singleton instance
_machine_directory: Optional[MachineDirectory] = None


def get_machine_directory() -> MachineDirectory:
    """Get the global machine directory instance."""
    global _machine_directory
    if _machine_directory is None:
        _machine_directory = MachineDirectory()
    return _machine_directory
