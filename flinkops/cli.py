"""
Click CLI for managing Flink SQL statements in Confluent Cloud.
"""

import functools
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, List, Optional

import click

from . import filters
from . import consumer_groups as cg
from .cleanup import CleanupOrchestrator, DeleteOutcome, verify_clean
from .client import ResourceClient
from .config import Credentials, load_credentials
from .debug import probe
from .errors import (
    ConfigError,
    ConsumerGroupError,
    FlinkOpsError,
    PermissionDenied,
    RemoteCallError,
    UserCancelled,
)
from .lister import list_records
from .models import CleanupPlan, FilterCriteria, StatementRecord
from .offsets import render, render_statement


def _echo_body(body: Any, indent: str = "") -> None:
    if body in (None, ""):
        return
    if isinstance(body, (dict, list)):
        text = json.dumps(body, indent=2)
    else:
        text = str(body)
    for line in text.splitlines():
        click.echo(f"{indent}{line}")


def handle_errors(func):
    """Map flinkops errors onto operator messages and exit codes."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except UserCancelled as e:
            click.echo(f"❌ {e}")
            sys.exit(0)
        except PermissionDenied as e:
            click.echo(f"❌ {e}", err=True)
            click.echo(f"   {e.hint}", err=True)
            _echo_body(e.body, indent="   ")
            sys.exit(1)
        except RemoteCallError as e:
            click.echo(f"❌ {e}", err=True)
            _echo_body(e.body, indent="   ")
            sys.exit(1)
        except ConsumerGroupError as e:
            click.echo(f"❌ {e}", err=True)
            if e.output:
                click.echo(e.output, err=True)
            sys.exit(1)
        except FlinkOpsError as e:
            click.echo(f"❌ Error: {e}", err=True)
            sys.exit(1)
    return wrapper


def _credentials(ctx: click.Context) -> Credentials:
    if ctx.obj.get("credentials") is None:
        if ctx.obj.get("client") is not None:
            ctx.obj["credentials"] = ctx.obj["client"].credentials
        else:
            ctx.obj["credentials"] = load_credentials(ctx.obj.get("credentials_path"))
    return ctx.obj["credentials"]


def _client(ctx: click.Context) -> ResourceClient:
    if ctx.obj.get("client") is None:
        ctx.obj["client"] = ResourceClient(_credentials(ctx))
    return ctx.obj["client"]


@click.group()
@click.option(
    "--credentials", "credentials_path",
    type=click.Path(dir_okay=False),
    help="Path to credentials.properties (default: $FLINKOPS_CREDENTIALS or ./credentials.properties)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log API calls to stderr")
@click.pass_context
def main(ctx, credentials_path: Optional[str], verbose: bool):
    """
    flinkops - Deploy and manage Flink SQL statements in Confluent Cloud.

    Statements are immutable. To modify one, stop or delete it and deploy a new one.
    """
    ctx.ensure_object(dict)
    ctx.obj["credentials_path"] = credentials_path
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@main.command("deploy")
@click.argument("sql_file", type=click.Path(dir_okay=False))
@click.argument("name", required=False)
@click.pass_context
@handle_errors
def deploy_cmd(ctx, sql_file: str, name: Optional[str]):
    """Deploy a new Flink SQL statement from SQL_FILE."""
    client = _client(ctx)
    credentials = client.credentials
    credentials.require_deployment()

    sql_path = Path(sql_file)
    if not sql_path.is_file():
        raise ConfigError(f"SQL file '{sql_file}' not found")
    sql = sql_path.read_text()

    name = name or f"flink-statement-{int(time.time())}"

    click.echo(f"🚀 Deploying Flink SQL statement: {name}")
    click.echo(f"Environment ID: {credentials.environment_id}")
    click.echo(f"Compute Pool ID: {credentials.compute_pool_id}")
    click.echo(f"Execution Service Account: {credentials.execution_service_account_id}")

    response = client.create_statement(name, sql)
    click.echo("✅ Successfully deployed Flink SQL statement")
    _echo_body(response.body)


@main.command("list")
@click.option("--principal", help="Only statements created by this principal")
@click.option("--status", help="Only statements in this phase (exact match)")
@click.pass_context
@handle_errors
def list_cmd(ctx, principal: Optional[str], status: Optional[str]):
    """List statements with optional filters."""
    client = _client(ctx)
    criteria = FilterCriteria(principal=principal, phase=status)

    click.echo(
        f"📋 Listing Flink SQL statements in environment: "
        f"{client.credentials.environment_id}{criteria.describe()}"
    )

    records = filters.apply(list_records(client), criteria)
    if not records:
        click.echo("No statements found matching the specified filters.")
        return

    for record in records:
        click.echo(
            f"Name: {record.name} | Status: {record.phase.value} | "
            f"Principal: {record.principal} | Created: {record.created_at_display}"
        )


@main.command("get")
@click.argument("name")
@click.pass_context
@handle_errors
def get_cmd(ctx, name: str):
    """Get details of a specific statement."""
    client = _client(ctx)
    click.echo(f"🔍 Getting statement details for: {name}")
    _echo_body(client.get_statement(name))


@main.command("delete")
@click.argument("name")
@click.pass_context
@handle_errors
def delete_cmd(ctx, name: str):
    """Delete a statement."""
    client = _client(ctx)
    click.echo(f"🗑️  Deleting statement: {name}")

    response = client.delete_statement_checked(name)
    if response.accepted:
        click.echo(f"✅ Statement deletion accepted and is being processed: {name}")
    else:
        click.echo(f"✅ Successfully deleted statement: {name}")
    _echo_body(response.body)


@main.command("stop")
@click.argument("name")
@click.pass_context
@handle_errors
def stop_cmd(ctx, name: str):
    """Stop a running statement."""
    client = _client(ctx)
    click.echo(f"⏹️  Stopping statement: {name}")

    response = client.stop_statement(name)
    if response.accepted:
        click.echo(f"✅ Statement stop request accepted and is being processed: {name}")
    else:
        click.echo(f"✅ Successfully stopped statement: {name}")
    _echo_body(response.body)


def _print_plan(plan: CleanupPlan, acting_principal: Optional[str]) -> None:
    if plan.blocked:
        click.echo("⚠️  Found statements created by other users/service accounts:")
        for record in plan.blocked:
            click.echo(
                f"  - {record.name} (Status: {record.phase.value}, "
                f"Principal: {record.principal}) - CANNOT DELETE"
            )
        click.echo("")

    if plan.deletable:
        click.echo(f"✅ Found statements that can be deleted (created by {acting_principal}):")
        for record in plan.deletable:
            click.echo(f"  - {record.name} (Status: {record.phase.value})")
        click.echo("")


def _confirm_delete(records: List[StatementRecord]) -> bool:
    """Anything but y/yes declines, including end of input."""
    try:
        answer = click.prompt(
            f"Do you want to delete these {len(records)} statements? (y/N)",
            default="N",
            show_default=False,
        )
    except click.Abort:
        click.echo("")
        return False
    return answer.strip().lower() in ("y", "yes")


def _print_outcome(outcome: DeleteOutcome) -> None:
    if outcome.accepted:
        click.echo(f"  ✅ Delete accepted: {outcome.name} (Status: {outcome.phase.value})")
        return
    status = f"HTTP {outcome.status_code}" if outcome.status_code else "no response"
    click.echo(f"  ❌ Failed to delete {outcome.name} ({status})")
    if outcome.status_code == 403:
        click.echo(f"     {PermissionDenied.hint}")
    _echo_body(outcome.body, indent="     ")


@main.command("clean")
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
@click.option("--principal", help="Only statements created by this principal")
@click.option("--status", help="Only statements in this phase (default: anything not RUNNING)")
@click.option("--reconcile-delay", type=float, default=2.0, show_default=True, help="Seconds to wait before re-listing after deletes")
@click.pass_context
@handle_errors
def clean_cmd(ctx, force: bool, principal: Optional[str], status: Optional[str], reconcile_delay: float):
    """Delete finished statements owned by the execution service account."""
    client = _client(ctx)
    credentials = client.credentials
    criteria = FilterCriteria.for_cleanup(principal=principal, phase=status)

    acting_principal = credentials.acting_principal
    if not criteria.explicit_principal:
        acting_principal = credentials.require_principal()

    click.echo(f"🧹 Cleaning up statements in environment: {credentials.environment_id}{criteria.describe()}")
    click.echo("")

    if force:
        click.echo("⚠️  Force mode enabled - proceeding without confirmation...")

    orchestrator = CleanupOrchestrator(
        client,
        acting_principal,
        confirm=_confirm_delete,
        on_plan=lambda plan: _print_plan(plan, principal or acting_principal),
        on_outcome=_print_outcome,
        reconcile_delay=reconcile_delay,
    )
    report = orchestrator.run(criteria, force=force)

    if report.nothing_to_clean:
        if report.plan.is_empty:
            click.echo("✅ No statements found matching the specified criteria. Nothing to clean up.")
        else:
            click.echo(f"❌ No statements found that can be deleted by this service account ({acting_principal}).")
            click.echo("   Only statements created by the same service account can be deleted.")
        return

    click.echo("")
    click.echo("🧹 Clean operation completed:")
    click.echo(f"  ✅ Deletion requests accepted: {report.accepted_count} statements")
    if report.failed_count:
        click.echo(f"  ❌ Failed: {report.failed_count} statements")

    if not report.reconciled:
        return

    click.echo("")
    click.echo("⏳ Note: Deletions are processed asynchronously. Checked current status:")
    if report.reconcile_error:
        click.echo(f"⚠️  Could not re-list statements: {report.reconcile_error}")
    elif not report.still_visible:
        click.echo("✅ All non-running statements have been processed for deletion.")
    else:
        click.echo(f"📋 Statements still visible ({len(report.still_visible)}, may be processing deletion):")
        for record in report.still_visible:
            click.echo(f"  - {record.name} (Status: {record.phase.value})")
        click.echo("")
        click.echo("💡 Tip: Some statements may take a few moments to disappear from the list.")
        click.echo("    Run 'flinkops list' again in a few seconds to verify.")


@main.command("verify-clean")
@click.pass_context
@handle_errors
def verify_clean_cmd(ctx):
    """Check whether any non-running statements remain."""
    client = _client(ctx)
    acting_principal = client.credentials.require_principal()
    click.echo(f"🔍 Checking for non-running statements in environment: {client.credentials.environment_id}")

    plan = verify_clean(client, acting_principal)
    if plan.is_empty:
        click.echo("✅ No non-running statements found - environment is clean!")
        return

    click.echo(f"📋 Found {len(plan.deletable) + len(plan.blocked)} non-running statement(s):")
    click.echo("")

    if plan.deletable:
        click.echo(f"✅ Statements you can delete ({len(plan.deletable)}, created by {acting_principal}):")
        for record in plan.deletable:
            click.echo(f"  - {record.name} (Status: {record.phase.value})")
        click.echo("")

    if plan.blocked:
        click.echo(f"⚠️  Statements you CANNOT delete ({len(plan.blocked)}, created by other principals):")
        for record in plan.blocked:
            click.echo(f"  - {record.name} (Status: {record.phase.value}, Principal: {record.principal})")
        click.echo("")

    if plan.deletable:
        click.echo(f"💡 Run 'flinkops clean' to remove your {len(plan.deletable)} statement(s).")
    else:
        click.echo("💡 No statements can be cleaned by this service account.")
        click.echo("   Only FlinkAdmin role can delete statements created by other principals.")


@main.command("offsets")
@click.argument("name", required=False)
@click.option("--principal", help="Only statements created by this principal")
@click.option("--status", help="Only statements in this phase")
@click.pass_context
@handle_errors
def offsets_cmd(ctx, name: Optional[str], principal: Optional[str], status: Optional[str]):
    """Show latest offsets for one statement or all matching statements."""
    client = _client(ctx)

    if name:
        click.echo(f"📊 Retrieving offsets for statement: {name}")
        record = StatementRecord.from_api(client.get_statement(name))
        click.echo(render_statement(record))
        return

    criteria = FilterCriteria(principal=principal, phase=status)
    click.echo(
        f"📊 Retrieving offsets for statements in environment: "
        f"{client.credentials.environment_id}{criteria.describe()}"
    )
    records = filters.apply(list_records(client), criteria)
    if not records:
        click.echo("No statements found matching the specified filters.")
        return

    click.echo("")
    click.echo(render(records))


@main.command("debug")
@click.pass_context
@handle_errors
def debug_cmd(ctx):
    """Probe the management API with the configured credentials."""
    client = _client(ctx)
    credentials = client.credentials

    click.echo("🔍 Confluent Cloud API Debug")
    click.echo("=" * 42)
    click.echo(f"Base URL: {credentials.base_url}")
    click.echo(f"Management API Key: {credentials.masked_key()}")
    click.echo(f"Organization ID: {credentials.organization_id}")
    click.echo(f"Environment ID: {credentials.environment_id}")
    click.echo("=" * 42)
    click.echo("")

    for result in probe(client):
        click.echo(f"Testing: {result.description}")
        click.echo(f"Endpoint: {credentials.base_url}{result.path}")
        click.echo(f"HTTP Status: {result.status_code if result.status_code is not None else 'no response'}")
        click.echo(f"Response Time: {result.elapsed:.3f}s")
        click.echo("Response Body:")
        _echo_body(result.body)
        click.echo("")
        click.echo("-" * 40)
        click.echo("")


@main.group("consumer-groups")
def consumer_groups_cmd():
    """Consumer group offsets formatted for Flink statements."""


@consumer_groups_cmd.command("offsets")
@click.argument("group")
@click.option("--topic", help="Only show offsets for this topic")
@click.pass_context
@handle_errors
def consumer_group_offsets_cmd(ctx, group: str, topic: Optional[str]):
    """Get committed offsets for GROUP and print them in Flink format."""
    credentials = _credentials(ctx)
    credentials.require_kafka()
    if not credentials.cluster_id:
        raise ConfigError("cluster_id is required for Kafka API operations", missing=["cluster_id"])

    click.echo(f"🔍 Retrieving consumer group information for: {group}")
    if topic:
        click.echo(f"Topic Filter: {topic}")
    click.echo(f"Bootstrap Servers: {cg.bootstrap_servers(credentials.kafka_rest_endpoint)}")
    click.echo("")

    output = cg.describe_group(credentials, group)
    rows = cg.parse_describe_output(output)

    if topic:
        selected = cg.filter_topic(rows, topic)
        if not selected:
            click.echo(f"⚠️  No data found for topic: {topic}")
            click.echo("Available topics in this consumer group:")
            for name in cg.topics_of(rows):
                click.echo(f"  - {name}")
            return
        rows = selected

    click.echo("📋 Consumer Group Offsets:")
    click.echo(output.rstrip())
    click.echo("")
    click.echo("🚀 Flink Statement Format:")
    click.echo(cg.format_for_flink(rows, group))


@consumer_groups_cmd.command("list")
@click.pass_context
@handle_errors
def consumer_group_list_cmd(ctx):
    """List all consumer groups in the cluster."""
    credentials = _credentials(ctx)
    credentials.require_kafka()

    groups = cg.list_groups(credentials)
    click.echo("📋 Available Consumer Groups:")
    if not groups:
        click.echo("  (No consumer groups found)")
    for group in groups:
        click.echo(f"  - {group}")
    click.echo("")
    click.echo("💡 Use 'flinkops consumer-groups offsets <group-name>' to get offsets for a specific group")


@consumer_groups_cmd.command("create-config")
@click.option(
    "--output", "output_path",
    type=click.Path(dir_okay=False),
    default="kafka-consumer-groups.properties",
    show_default=True,
    help="Where to write the properties file",
)
@click.pass_context
@handle_errors
def consumer_group_create_config_cmd(ctx, output_path: str):
    """Write a kafka-consumer-groups.properties file for manual CLI use."""
    credentials = _credentials(ctx)
    credentials.require_kafka()

    path = cg.write_config_file(credentials, Path(output_path))
    bootstrap = cg.bootstrap_servers(credentials.kafka_rest_endpoint)

    click.echo(f"✅ Kafka properties file created: {path}")
    click.echo("")
    click.echo("# List all consumer groups:")
    click.echo(f"kafka-consumer-groups --bootstrap-server {bootstrap} --command-config {path} --list")
    click.echo("")
    click.echo("# Describe a specific consumer group:")
    click.echo(f"kafka-consumer-groups --bootstrap-server {bootstrap} --command-config {path} --group <group-name> --describe")
    click.echo("")
    click.echo("🔒 Security Note: This file contains your API credentials - keep it secure!")


if __name__ == "__main__":
    main()
