"""
Tests for the click command line.
"""

from dataclasses import replace

from click.testing import CliRunner

from conftest import FakeClient, SCENARIO_ITEMS, make_item

from flinkops.cli import main
from flinkops.client import ApiResponse
from flinkops.errors import PermissionDenied, RemoteListError


class CommandClient(FakeClient):
    """FakeClient with the single-statement calls used by CLI commands."""

    def __init__(self, credentials, listings, **kwargs):
        super().__init__(credentials, listings, **kwargs)
        self.created = []

    def get_statement(self, name):
        for item in self.listings[0]:
            if item["name"] == name:
                return item
        raise RemoteListError("not found", status_code=404)

    def create_statement(self, name, sql):
        self.created.append((name, sql))
        return ApiResponse(status_code=201, body={"name": name})

    def stop_statement(self, name):
        raise PermissionDenied("Permission denied trying to stop statement a (HTTP 403)", status_code=403)


def _invoke(client, args, input=None):
    return CliRunner().invoke(main, args, obj={"client": client}, input=input)


class TestListCommand:
    """Test statement listing."""

    def test_list_all(self, credentials):
        result = _invoke(CommandClient(credentials, [SCENARIO_ITEMS]), ["list"])

        assert result.exit_code == 0
        assert "Name: a | Status: COMPLETED | Principal: sa-1" in result.output
        assert "Name: c | Status: FAILED | Principal: sa-2" in result.output

    def test_list_filtered_empty(self, credentials):
        result = _invoke(CommandClient(credentials, [SCENARIO_ITEMS]), ["list", "--status", "STOPPED"])

        assert result.exit_code == 0
        assert "No statements found matching the specified filters." in result.output

    def test_list_failure_exits_non_zero(self, credentials):
        client = CommandClient(credentials, [RemoteListError("Failed to list statements (HTTP 500)", status_code=500)])

        result = _invoke(client, ["list"])

        assert result.exit_code == 1
        assert "HTTP 500" in result.output


class TestCleanCommand:
    """Test interactive and forced cleanup."""

    def test_force_clean(self, credentials):
        client = CommandClient(credentials, [SCENARIO_ITEMS, []])

        result = _invoke(client, ["clean", "--force", "--reconcile-delay", "0"])

        assert result.exit_code == 0
        assert client.deleted == ["a"]
        assert "c (Status: FAILED, Principal: sa-2) - CANNOT DELETE" in result.output
        assert "Deletion requests accepted: 1 statements" in result.output
        assert "All non-running statements have been processed for deletion." in result.output

    def test_declined_prompt_deletes_nothing(self, credentials):
        client = CommandClient(credentials, [SCENARIO_ITEMS])

        result = _invoke(client, ["clean"], input="n\n")

        assert result.exit_code == 0
        assert client.deleted == []
        assert "Clean operation cancelled." in result.output

    def test_unrecognized_answer_declines(self, credentials):
        client = CommandClient(credentials, [SCENARIO_ITEMS])

        result = _invoke(client, ["clean"], input="maybe\n")

        assert result.exit_code == 0
        assert client.deleted == []
        assert "Clean operation cancelled." in result.output

    def test_end_of_input_declines(self, credentials):
        client = CommandClient(credentials, [SCENARIO_ITEMS])

        result = _invoke(client, ["clean"], input="")

        assert result.exit_code == 0
        assert client.deleted == []
        assert "Clean operation cancelled." in result.output

    def test_empty_answer_declines(self, credentials):
        client = CommandClient(credentials, [SCENARIO_ITEMS])

        result = _invoke(client, ["clean"], input="\n")

        assert result.exit_code == 0
        assert client.deleted == []

    def test_yes_is_case_insensitive(self, credentials):
        client = CommandClient(credentials, [SCENARIO_ITEMS, []])

        result = _invoke(client, ["clean", "--reconcile-delay", "0"], input="YES\n")

        assert result.exit_code == 0
        assert client.deleted == ["a"]

    def test_confirmed_prompt(self, credentials):
        client = CommandClient(credentials, [SCENARIO_ITEMS, [SCENARIO_ITEMS[2]]])

        result = _invoke(client, ["clean", "--reconcile-delay", "0"], input="y\n")

        assert result.exit_code == 0
        assert client.deleted == ["a"]
        assert "Statements still visible (1" in result.output

    def test_nothing_deletable(self, credentials):
        client = CommandClient(credentials, [[make_item("c", "FAILED", "sa-2")]])

        result = _invoke(client, ["clean", "--force"])

        assert result.exit_code == 0
        assert client.deleted == []
        assert "No statements found that can be deleted by this service account (sa-1)" in result.output

    def test_nothing_matching(self, credentials):
        client = CommandClient(credentials, [[make_item("b", "RUNNING", "sa-1")]])

        result = _invoke(client, ["clean", "--force"])

        assert "Nothing to clean up." in result.output

    def test_failed_delete_reported(self, credentials):
        client = CommandClient(credentials, [SCENARIO_ITEMS, []], delete_statuses={"a": 403})

        result = _invoke(client, ["clean", "--force", "--reconcile-delay", "0"])

        assert result.exit_code == 0
        assert "Failed to delete a (HTTP 403)" in result.output
        assert PermissionDenied.hint in result.output
        assert "Failed: 1 statements" in result.output
        # no accepted deletes, so no reconciliation listing
        assert client.list_calls == 1

    def test_missing_principal_is_config_error(self, credentials):
        client = CommandClient(replace(credentials, execution_service_account_id=None), [SCENARIO_ITEMS])

        result = _invoke(client, ["clean", "--force"])

        assert result.exit_code == 1
        assert "execution_service_account_id" in result.output
        assert client.list_calls == 0


class TestOtherCommands:
    """Test deploy, stop, verify-clean and offsets."""

    def test_deploy(self, credentials, tmp_path):
        sql_file = tmp_path / "query.sql"
        sql_file.write_text("SELECT 1;")
        client = CommandClient(credentials, [[]])

        result = _invoke(client, ["deploy", str(sql_file), "my-query"])

        assert result.exit_code == 0
        assert client.created == [("my-query", "SELECT 1;")]
        assert "Successfully deployed" in result.output

    def test_deploy_missing_file(self, credentials, tmp_path):
        result = _invoke(CommandClient(credentials, [[]]), ["deploy", str(tmp_path / "nope.sql")])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_stop_permission_denied(self, credentials):
        result = _invoke(CommandClient(credentials, [[]]), ["stop", "a"])

        assert result.exit_code == 1
        assert "HTTP 403" in result.output
        assert PermissionDenied.hint in result.output

    def test_verify_clean(self, credentials):
        result = _invoke(CommandClient(credentials, [SCENARIO_ITEMS]), ["verify-clean"])

        assert result.exit_code == 0
        assert "Found 2 non-running statement(s)" in result.output
        assert "Run 'flinkops clean' to remove your 1 statement(s)." in result.output

    def test_verify_clean_empty(self, credentials):
        result = _invoke(CommandClient(credentials, [[make_item("b", "RUNNING", "sa-1")]]), ["verify-clean"])
        assert "environment is clean!" in result.output

    def test_offsets_single_statement(self, credentials):
        items = [make_item("q1", "STOPPED", "sa-1", offsets={"orders": "partition:0,offset:9"})]

        result = _invoke(CommandClient(credentials, [items]), ["offsets", "q1"])

        assert result.exit_code == 0
        assert "orders: partition:0,offset:9" in result.output

    def test_offsets_listing(self, credentials):
        result = _invoke(CommandClient(credentials, [SCENARIO_ITEMS]), ["offsets", "--principal", "sa-2"])

        assert "Statement: c" in result.output
        assert "Statement: a" not in result.output
