"""
Global test fixtures.

Provides a throwaway SQLite registry per test, machine/site services
bound to it, and a registered machine standing in for this host.
"""

import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio

sys.path.insert(0, str(Path(__file__).parent.parent / "api"))

# Keep the module-level settings away from system paths before any app imports
os.environ.setdefault("REGISTRY_DB_PATH", "/tmp/nginx-registry-tests/registry.db")

from config import settings  # noqa: E402
from core.database import Database  # noqa: E402
from core.machine_directory import MachineDirectory  # noqa: E402
from core.site_registry import SiteRegistry  # noqa: E402
from models.machine import MachineCreateRequest  # noqa: E402

NGINX_HOST_IP = "10.0.0.1"


@pytest_asyncio.fixture
async def db(tmp_path):
    """Initialized registry database in a temporary directory."""
    database = Database(db_path=str(tmp_path / "registry.db"))
    await database.initialize()
    return database


@pytest.fixture
def machine_directory(db):
    return MachineDirectory(db=db)


@pytest.fixture
def site_registry(db):
    return SiteRegistry(db=db)


@pytest.fixture
def current_host_ip(monkeypatch):
    """Pin this host's address so no interface detection happens."""
    monkeypatch.setattr(settings, "host_ip_address", NGINX_HOST_IP)
    return NGINX_HOST_IP


@pytest_asyncio.fixture
async def nginx_host(machine_directory, current_host_ip):
    """Registered machine matching this host's pinned address."""
    return await machine_directory.create(
        MachineCreateRequest(
            machine_name="nginx-box",
            local_ip_address=current_host_ip,
            nginx_storage_path_options=["/etc/nginx/sites-available", "/etc/nginx/conf.d"],
        )
    )


@pytest.fixture
def tmp_conf_dir(tmp_path):
    """Temporary NGINX sites directory."""
    conf_dir = tmp_path / "sites-available"
    conf_dir.mkdir()
    return conf_dir


@pytest.fixture
def sample_proxy_config():
    """Reverse proxy server block with a static location."""
    return """
server {
    listen 80;
    server_name example.com www.example.com;

    location /static {
        alias /var/www/example/static;
    }

    location / {
        proxy_pass http://192.168.100.17:8001;
        proxy_set_header Host $host;
    }
}
"""
