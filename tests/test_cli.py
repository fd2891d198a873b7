"""
Tests for the command-line entry points

Run with: python -m pytest tests/test_cli.py -v
"""

import json

import pytest

from supplyfinder import server as server_main
from supplyfinder.client import cli
from supplyfinder.config.settings import settings
from supplyfinder.service.lookup import GreeterService, LookupService


class TestClientArgs:
    """Test client argument parsing."""

    def test_default_target(self):
        args = cli.parse_args([])
        assert args.target == settings.SUPPLIER_TARGET
        assert args.record_id == 1

    def test_target_equals_syntax(self):
        args = cli.parse_args(["--target=10.0.0.5:6000"])
        assert args.target == "10.0.0.5:6000"

    @pytest.mark.parametrize("argv", [
        ["--targets=x:1"],
        ["--tar=x:1"],
        ["localhost:50051"],
        ["--record-id", "abc"],
    ])
    def test_bad_syntax_prints_usage_and_exits_zero(self, argv, capsys):
        with pytest.raises(SystemExit) as excinfo:
            cli.parse_args(argv)

        assert excinfo.value.code == 0
        assert "usage: supplyfinder-client" in capsys.readouterr().out


class TestClientRun:
    """Test the client end to end."""

    @pytest.mark.asyncio
    async def test_run_against_servers(
        self, supplier_server, vendor_server, supplier_target, vendor_target, capsys
    ):
        status = await cli.run(supplier_target, 1, vendor_target=vendor_target)

        out = capsys.readouterr().out.splitlines()
        assert status == 0
        assert out == [
            "Greeter received: Hello supplier",
            "Greeter received: Hello vendor",
            "Lookup received: Kroger at localhost:10933 (Ann Arbor, MI)",
        ]

    @pytest.mark.asyncio
    async def test_run_missing_record(
        self, supplier_server, vendor_server, supplier_target, vendor_target, capsys
    ):
        await cli.run(supplier_target, 2, vendor_target=vendor_target)
        assert "Lookup received: no record with id 2" in capsys.readouterr().out

    def test_main_with_servers_down(self, closed_target, monkeypatch, capsys):
        monkeypatch.setattr(settings, "VENDOR_TARGET", closed_target)
        monkeypatch.setattr(settings, "CONNECT_TIMEOUT", 1.0)

        status = cli.main([f"--target={closed_target}"])

        out = capsys.readouterr().out
        assert status == 0
        assert out.count("Greeter received: RPC failed") == 2
        assert "Lookup received: RPC failed" in out
        assert out.count("UNAVAILABLE") == 3


class TestServerSetup:
    """Test server argument parsing and service construction."""

    def test_supplier_is_default(self):
        service = server_main.build_service(server_main.parse_args([]))
        assert isinstance(service, LookupService)
        assert service.inquire_record(1).found

    def test_vendor_role(self):
        service = server_main.build_service(server_main.parse_args(["--role", "vendor"]))
        assert type(service) is GreeterService

    def test_empty_registry(self):
        service = server_main.build_service(server_main.parse_args(["--empty"]))
        assert service.registry.size() == 0

    def test_seed_file(self, tmp_path):
        path = tmp_path / "vendors.json"
        path.write_text(json.dumps({
            "7": {"url": "localhost:7", "name": "Meijer", "location": "Ypsilanti, MI"},
        }))

        service = server_main.build_service(server_main.parse_args(["--seed", str(path)]))

        assert service.registry.size() == 1
        assert service.inquire_record(7).record.name == "Meijer"

    def test_seed_and_empty_conflict(self):
        with pytest.raises(SystemExit):
            server_main.parse_args(["--seed", "x.json", "--empty"])
