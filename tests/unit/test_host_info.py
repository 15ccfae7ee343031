"""
Unit tests for host identity resolution.
"""

import socket
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from config import settings
from core.errors import PreconditionError
from core.host_info import get_machine_info, resolve_current_machine
from models.machine import MachineCreateRequest


def _addr(family, address):
    return SimpleNamespace(family=family, address=address)


class TestGetMachineInfo:
    """Tests for get_machine_info."""

    def test_configured_address_wins(self, monkeypatch):
        monkeypatch.setattr(settings, "host_ip_address", "10.1.2.3")

        with patch("core.host_info.psutil.net_if_addrs") as mock_addrs:
            info = get_machine_info()

        assert info.local_ip_address == "10.1.2.3"
        assert info.machine_name == socket.gethostname()
        mock_addrs.assert_not_called()

    def test_first_external_ipv4(self, monkeypatch):
        monkeypatch.setattr(settings, "host_ip_address", None)
        interfaces = {
            "lo": [_addr(socket.AF_INET, "127.0.0.1")],
            "eth0": [
                _addr(socket.AF_INET6, "fe80::1"),
                _addr(socket.AF_INET, "192.168.1.20"),
            ],
            "eth1": [_addr(socket.AF_INET, "10.0.0.7")],
        }

        with patch("core.host_info.psutil.net_if_addrs", return_value=interfaces):
            assert get_machine_info().local_ip_address == "192.168.1.20"

    def test_loopback_only_falls_back(self, monkeypatch):
        monkeypatch.setattr(settings, "host_ip_address", None)

        with patch("core.host_info.psutil.net_if_addrs", return_value={"lo": [_addr(socket.AF_INET, "127.0.0.1")]}):
            assert get_machine_info().local_ip_address == "127.0.0.1"


class TestResolveCurrentMachine:
    """Tests for resolve_current_machine."""

    @pytest.mark.asyncio
    async def test_registered_host(self, machine_directory, nginx_host):
        info, machine = await resolve_current_machine(machine_directory)

        assert info.local_ip_address == nginx_host.local_ip_address
        assert machine.id == nginx_host.id

    @pytest.mark.asyncio
    async def test_unregistered_host(self, machine_directory, current_host_ip):
        await machine_directory.create(MachineCreateRequest(machine_name="other", local_ip_address="10.0.0.99"))

        with pytest.raises(PreconditionError) as exc_info:
            await resolve_current_machine(machine_directory)

        assert exc_info.value.error_type == "host_not_registered"
        assert current_host_ip in exc_info.value.message
