"""
SQLite database management for the machine and site registries.

Provides async database operations using aiosqlite for
storing known machines and registered nginx virtual-host files.
"""

import logging
from pathlib import Path
from typing import Optional, List, Dict, Any
from contextlib import asynccontextmanager
import json

import aiosqlite

from config import settings

logger = logging.getLogger(__name__)

# Database schema
SCHEMA = """
-- Machines table
CREATE TABLE IF NOT EXISTS machines (
    id TEXT PRIMARY KEY,
    machine_name TEXT NOT NULL,
    url_for_404_api TEXT,
    local_ip_address TEXT,
    user_home_dir TEXT,
    nginx_storage_path_options_json TEXT,

    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_machines_local_ip_address ON machines(local_ip_address);

-- NGINX files table
CREATE TABLE IF NOT EXISTS nginx_files (
    id TEXT PRIMARY KEY,
    server_name TEXT NOT NULL UNIQUE,
    additional_server_names_json TEXT,
    port_number INTEGER NOT NULL DEFAULT 0,

    app_host_server_machine_id TEXT,
    nginx_host_server_machine_id TEXT NOT NULL,

    framework TEXT,
    store_directory TEXT,

    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,

    FOREIGN KEY (app_host_server_machine_id) REFERENCES machines(id),
    FOREIGN KEY (nginx_host_server_machine_id) REFERENCES machines(id)
);

CREATE INDEX IF NOT EXISTS idx_nginx_files_app_host ON nginx_files(app_host_server_machine_id);
CREATE INDEX IF NOT EXISTS idx_nginx_files_nginx_host ON nginx_files(nginx_host_server_machine_id);
"""


class Database:
    """Async SQLite database manager."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or settings.registry_db_path

    async def initialize(self) -> None:
        """Initialize database and create tables if needed."""
        # Ensure parent directory exists
        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

        async with self.connection() as db:
            await db.executescript(SCHEMA)
            await db.commit()

        logger.info(f"Database initialized at {self.db_path}")

    @asynccontextmanager
    async def connection(self):
        """Get a database connection context manager."""
        conn = await aiosqlite.connect(self.db_path)
        conn.row_factory = aiosqlite.Row
        try:
            yield conn
        finally:
            await conn.close()

    async def fetch_one(
        self,
        query: str,
        params: tuple = ()
    ) -> Optional[Dict[str, Any]]:
        """Execute a query and fetch one result."""
        async with self.connection() as db:
            cursor = await db.execute(query, params)
            row = await cursor.fetchone()
            if row:
                return dict(row)
            return None

    async def fetch_all(
        self,
        query: str,
        params: tuple = ()
    ) -> List[Dict[str, Any]]:
        """Execute a query and fetch all results."""
        async with self.connection() as db:
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

    async def insert(
        self,
        table: str,
        data: Dict[str, Any]
    ) -> str:
        """Insert a row and return the id."""
        columns = list(data.keys())
        placeholders = ", ".join(["?" for _ in columns])
        columns_str = ", ".join(columns)

        query = f"INSERT INTO {table} ({columns_str}) VALUES ({placeholders})"
        values = tuple(data.values())

        async with self.connection() as db:
            await db.execute(query, values)
            await db.commit()

        return data.get("id", "")

    async def delete_all(self, table: str) -> int:
        """Delete every row in a table. Returns count deleted."""
        async with self.connection() as db:
            cursor = await db.execute(f"DELETE FROM {table}")
            await db.commit()
            return cursor.rowcount

    async def count(self, table: str) -> int:
        """Count rows in a table."""
        result = await self.fetch_one(f"SELECT COUNT(*) as count FROM {table}")
        return result["count"] if result else 0


def serialize_json(data: Optional[Any]) -> Optional[str]:
    """Serialize a value to JSON string for storage."""
    if data is None:
        return None
    return json.dumps(data)


def deserialize_json(data: Optional[str]) -> Optional[Any]:
    """Deserialize a JSON string from storage."""
    if data is None:
        return None
    return json.loads(data)


# Singleton database instance
_db_instance: Optional[Database] = None


def get_database() -> Database:
    """Get the global database instance."""
    global _db_instance
    if _db_instance is None:
        _db_instance = Database()
    return _db_instance


async def initialize_database() -> Database:
    """Initialize and return the database instance."""
    db = get_database()
    await db.initialize()
    return db
