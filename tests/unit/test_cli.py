"""
Unit tests for the DSS command line interface.
"""

import json
import os

import pytest
from click.testing import CliRunner

from cli.main import cli


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in list(os.environ):
        if key.startswith("DSS_"):
            monkeypatch.delenv(key)
    return CliRunner()


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "registry-data"


def invoke(runner, data_dir, *args, secret=None):
    env = {"DSS_ADMIN_SECRET": secret} if secret else {}
    return runner.invoke(cli, ["--data-dir", str(data_dir), "-o", "json", *args], env=env)


def invoke_json(runner, data_dir, *args, secret=None):
    result = invoke(runner, data_dir, *args, secret=secret)
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


@pytest.fixture
def secret(runner, data_dir):
    return invoke_json(runner, data_dir, "admin", "init")["admin_secret"]


@pytest.fixture
def closed_group(runner, data_dir, secret):
    invoke_json(runner, data_dir, "group", "create", "--name", "Finals2024",
                "--product-path", "/public/finals2024", secret=secret)
    invoke_json(runner, data_dir, "group", "close", "1", secret=secret)
    invoke_json(runner, data_dir, "account", "setup", "0xaa")
    return 1


class TestAdminCommands:
    """Test admin capability commands."""

    def test_init_once(self, runner, data_dir, secret):
        assert len(secret) == 64

        result = invoke(runner, data_dir, "admin", "init")
        assert result.exit_code == 1
        assert "already been issued" in result.output

    def test_privileged_command_without_secret(self, runner, data_dir, secret):
        result = invoke(runner, data_dir, "group", "create", "--name", "A", "--product-path", "/a")

        assert result.exit_code == 1
        assert "Admin secret required" in result.output

    def test_wrong_secret(self, runner, data_dir, secret):
        result = invoke(runner, data_dir, "group", "create", "--name", "A", "--product-path", "/a",
                        secret="f" * 64)

        assert result.exit_code == 1
        assert "Invalid admin credential" in result.output


class TestGroupCommands:
    """Test collection group commands."""

    def test_lifecycle(self, runner, data_dir, secret):
        created = invoke_json(runner, data_dir, "group", "create", "--name", "Finals2024",
                              "--product-path", "/public/finals2024", secret=secret)
        assert created["id"] == 1
        assert created["open"] is True

        added = invoke_json(runner, data_dir, "group", "add-edition", "1", "7", secret=secret)
        assert added["edition_ids"] == [7]

        closed = invoke_json(runner, data_dir, "group", "close", "1", secret=secret)
        assert closed["open"] is False

        result = invoke(runner, data_dir, "group", "add-edition", "1", "8", secret=secret)
        assert result.exit_code == 1
        assert invoke_json(runner, data_dir, "group", "show", "1")["edition_ids"] == [7]

    def test_time_bound_create(self, runner, data_dir, secret):
        created = invoke_json(runner, data_dir, "group", "create", "--name", "Weekend",
                              "--product-path", "/weekend",
                              "--start", "100", "--end", "2024-01-01T00:00:00Z", secret=secret)

        assert created["time_bound"] is True
        assert created["start_time"] == 100.0
        assert created["end_time"] == 1704067200.0

    def test_time_bound_create_needs_both_ends(self, runner, data_dir, secret):
        result = invoke(runner, data_dir, "group", "create", "--name", "Weekend",
                        "--product-path", "/weekend", "--start", "100", secret=secret)

        assert result.exit_code == 1
        assert invoke_json(runner, data_dir, "group", "list") == []

    def test_list_filter(self, runner, data_dir, secret, closed_group):
        invoke_json(runner, data_dir, "group", "create", "--name", "Next",
                    "--product-path", "/next", secret=secret)

        assert [g["id"] for g in invoke_json(runner, data_dir, "group", "list")] == [1, 2]
        assert [g["id"] for g in invoke_json(runner, data_dir, "group", "list", "--state", "open")] == [2]

    def test_show_unknown(self, runner, data_dir):
        result = invoke(runner, data_dir, "group", "show", "3")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_table_output(self, runner, data_dir, secret, closed_group):
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "group", "list"])

        assert result.exit_code == 0
        assert "Finals2024" in result.output


class TestNFTCommands:
    """Test minting and custody commands."""

    def mint(self, runner, data_dir, secret, recipient="0xaa", level="3"):
        return invoke(runner, data_dir, "nft", "mint", "--group-id", "1", "--completed-by", "alice",
                      "--level", level, "--recipient", recipient, secret=secret)

    def test_mint(self, runner, data_dir, secret, closed_group):
        result = self.mint(runner, data_dir, secret)
        assert result.exit_code == 0, result.output

        token = json.loads(result.output)
        assert token["id"] == 1
        assert token["serial_number"] == 1
        assert token["owner"] == "0xaa"
        assert invoke_json(runner, data_dir, "nft", "supply") == {"total_supply": 1}
        assert invoke_json(runner, data_dir, "account", "ids", "0xaa")["ids"] == [1]

    def test_mint_failure_is_atomic(self, runner, data_dir, secret, closed_group):
        assert self.mint(runner, data_dir, secret, level="11").exit_code == 1
        assert self.mint(runner, data_dir, secret, recipient="0xnobody").exit_code == 1

        assert invoke_json(runner, data_dir, "nft", "supply") == {"total_supply": 0}
        assert invoke_json(runner, data_dir, "group", "show", "1")["num_minted"] == 0

    def test_show_transfer_burn(self, runner, data_dir, secret, closed_group):
        self.mint(runner, data_dir, secret)
        invoke_json(runner, data_dir, "account", "setup", "0xbb")

        assert invoke_json(runner, data_dir, "nft", "show", "0xaa", "1")["completed_by"] == "alice"

        invoke_json(runner, data_dir, "nft", "transfer", "0xaa", "0xbb", "1")
        assert invoke_json(runner, data_dir, "account", "ids", "0xaa")["ids"] == []
        assert invoke_json(runner, data_dir, "account", "ids", "0xbb")["ids"] == [1]

        assert invoke(runner, data_dir, "nft", "show", "0xaa", "1").exit_code == 1

        invoke_json(runner, data_dir, "nft", "burn", "0xbb", "1", "--yes")
        assert invoke_json(runner, data_dir, "account", "ids", "0xbb")["ids"] == []
        assert invoke_json(runner, data_dir, "nft", "supply") == {"total_supply": 1}

    def test_views(self, runner, data_dir, secret, closed_group):
        self.mint(runner, data_dir, secret)

        assert invoke_json(runner, data_dir, "nft", "views", "0xaa", "1") == ["Display", "Serial", "Traits"]
        display = invoke_json(runner, data_dir, "nft", "views", "0xaa", "1", "--view", "Display")
        assert display["name"] == "Finals2024"
        assert display["thumbnail"].endswith("/1.png")
        assert invoke_json(runner, data_dir, "nft", "views", "0xaa", "1", "--view", "Serial") == {"Serial": 1}

    def test_padded_recipient_address(self, runner, data_dir, secret, closed_group):
        assert invoke_json(runner, data_dir, "account", "setup", " 0xcc")["owner"] == "0xcc"

        result = self.mint(runner, data_dir, secret, recipient=" 0xcc ")
        assert result.exit_code == 0, result.output
        assert invoke_json(runner, data_dir, "account", "ids", "0xcc")["ids"] == [1]

    def test_audit_log_records_only_saved_changes(self, runner, data_dir, secret, closed_group,
                                                 tmp_path):
        audit = tmp_path / "audit.jsonl"
        env = {"DSS_ADMIN_SECRET": secret, "DSS_EVENTS_AUDIT_LOG": str(audit)}
        base = ["--data-dir", str(data_dir), "-o", "json", "nft", "mint", "--group-id", "1",
                "--completed-by", "alice", "--recipient", "0xaa", "--level"]

        assert runner.invoke(cli, base + ["2"], env=env).exit_code == 0
        assert runner.invoke(cli, base + ["11"], env=env).exit_code == 1
        assert runner.invoke(cli, base + ["3"], env=env).exit_code == 0

        lines = [json.loads(line) for line in audit.read_text().splitlines()]
        assert [line["event_type"] for line in lines] == ["Minted", "Deposit"] * 2
        assert [line["sequence"] for line in lines] == [1, 2, 3, 4]


class TestAccountAndConfigCommands:
    """Test account and config commands."""

    def test_account_setup(self, runner, data_dir):
        assert invoke_json(runner, data_dir, "account", "is-setup", "0xaa")["is_setup"] is False
        assert invoke_json(runner, data_dir, "account", "setup", "0xaa")["created"] is True
        assert invoke_json(runner, data_dir, "account", "setup", "0xaa")["created"] is False
        assert invoke_json(runner, data_dir, "account", "list") == [{"owner": "0xaa", "tokens": 0}]

    def test_unknown_account_ids(self, runner, data_dir):
        result = invoke(runner, data_dir, "account", "ids", "0xzz")
        assert result.exit_code == 1

    def test_config_show_masks_secret(self, runner, data_dir):
        shown = invoke_json(runner, data_dir, "config", "show", secret="s3cret")

        assert shown["admin"]["secret"] == "********"
        assert invoke_json(runner, data_dir, "config", "show", "--show-secrets",
                           secret="s3cret")["admin"]["secret"] == "s3cret"

    def test_config_validate(self, runner, data_dir):
        assert invoke_json(runner, data_dir, "config", "validate") == {"valid": True}

    def test_config_sources(self, runner, data_dir):
        assert invoke_json(runner, data_dir, "config", "sources") == ["defaults"]


class TestStorageCommands:
    """Test registry document maintenance commands."""

    def test_info_and_verify(self, runner, data_dir, secret, closed_group):
        info = invoke_json(runner, data_dir, "storage", "info")
        assert info["exists"] is True
        assert info["file_path"].endswith("registry.json")

        verified = invoke_json(runner, data_dir, "storage", "verify")
        assert verified["valid"] is True
        assert verified["groups"] == 1

    def test_verify_corrupt_document(self, runner, data_dir, secret):
        (data_dir / "registry.json").write_text("{broken")

        result = invoke(runner, data_dir, "storage", "verify")
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_restore_backup(self, runner, data_dir, secret, closed_group):
        backups = invoke_json(runner, data_dir, "storage", "backups")
        assert backups

        # Newest backup predates the account setup in the fixture
        restored = invoke_json(runner, data_dir, "storage", "restore", backups[0]["timestamp"], "--yes")
        assert restored["restored"] == backups[0]["timestamp"]
        assert invoke_json(runner, data_dir, "account", "is-setup", "0xaa")["is_setup"] is False
        assert invoke_json(runner, data_dir, "group", "show", "1")["open"] is False

    def test_restore_unknown_backup(self, runner, data_dir, secret):
        result = invoke(runner, data_dir, "storage", "restore", "19700101_000000_000000", "--yes")
        assert result.exit_code == 1
        assert "not found" in result.output
