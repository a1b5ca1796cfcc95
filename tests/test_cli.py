# ==============================================
# Tests for the CLI
# ==============================================

from unittest.mock import patch

import pytest

from nosql_migrate import cli
from nosql_migrate.config import AppConfig, ConnectionConfig, SourceConfig


@pytest.fixture
def app_config():
    return AppConfig(
        source=SourceConfig(database="legacy"),
        target=ConnectionConfig(host="localhost", database="test_db"),
    )


class TestParser:

    def test_sync_options(self):
        args = cli.build_parser().parse_args(["sync", "--table", "users", "--table", "orders", "--continue-on-error"])
        assert args.table == ["users", "orders"]
        assert args.continue_on_error is True
        assert args.handler is cli.cmd_sync

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestAskYesNo:

    @pytest.mark.parametrize("answer, expected", [("y", True), ("YES", True), ("", False), ("n", False)])
    def test_answers(self, answer, expected):
        with patch("builtins.input", return_value=answer):
            assert cli.ask_yes_no("Drop?") is expected


class TestCommands:

    def test_drop_declined(self, app_config, make_store):
        store = make_store(existing_tables=["users"])
        with patch.object(cli, "open_store", return_value=store), \
                patch("builtins.input", return_value="n"):
            assert cli.main(["drop"], config=app_config) == 1
        assert "users" in store.tables
        assert store.opened == 0

    def test_drop_confirmed(self, app_config, make_store):
        store = make_store(existing_tables=["users"])
        with patch.object(cli, "open_store", return_value=store), \
                patch("builtins.input", return_value="y"):
            assert cli.main(["drop"], config=app_config) == 0
        assert store.tables == {}

    def test_force_drop_declined_never_connects_the_drop_store(self, app_config, make_store, users_table):
        config = AppConfig(
            source=app_config.source,
            target=ConnectionConfig(host="localhost", database="test_db", force_drop=True),
        )
        drop_store = make_store(existing_tables=["users"])
        sync_store = make_store()
        reader = FakeReader(users_table, [])
        with patch.object(cli, "open_store", side_effect=[drop_store, sync_store]), \
                patch.object(cli.MySQLReader, "from_config", return_value=reader), \
                patch("builtins.input", return_value="n"):
            assert cli.main(["sync"], config=config) == 0
        assert drop_store.opened == 0
        assert "users" in drop_store.tables
        assert sync_store.has_connection() is False
        assert sync_store.opened == 1

    def test_force_drop_confirmed_then_migrates_on_fresh_store(self, app_config, make_store, users_table, created_at):
        config = AppConfig(
            source=app_config.source,
            target=ConnectionConfig(host="localhost", database="test_db", force_drop=True),
        )
        drop_store = make_store(existing_tables=["orders"])
        sync_store = make_store()
        reader = FakeReader(users_table, [{"pre_mongified_id": 1, "name": "A", "created_at": created_at}])
        with patch.object(cli, "open_store", side_effect=[drop_store, sync_store]), \
                patch.object(cli.MySQLReader, "from_config", return_value=reader), \
                patch("builtins.input", return_value="y"):
            assert cli.main(["sync"], config=config) == 0
        assert drop_store.tables == {}
        assert len(sync_store.tables["users"]) == 1

    def test_configuration_error_exits_nonzero(self):
        config = AppConfig(source=SourceConfig(), target=ConnectionConfig())
        assert cli.main(["drop"], config=config) == 1

    def test_sync_runs_migration(self, app_config, make_store, users_table, created_at):
        store = make_store()
        reader = FakeReader(users_table, [{"pre_mongified_id": 1, "name": "A", "created_at": created_at}])
        with patch.object(cli, "open_store", return_value=store), \
                patch.object(cli.MySQLReader, "from_config", return_value=reader):
            assert cli.main(["sync", "--table", "users"], config=app_config) == 0
        assert reader.requested == ["users"]
        assert len(store.tables["users"]) == 1


class FakeReader:
    def __init__(self, table, rows):
        self.table = table
        self._rows = rows
        self.requested = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return None

    def table_definitions(self, names=None):
        self.requested = names
        return [self.table]

    def rows(self, table):
        return iter(self._rows)
