"""CLI entry point for the task dashboard."""

import json
import logging
import sqlite3
import sys
from pathlib import Path

import click

from task_dashboard.config import get_config
from task_dashboard.core.api import ApiClient
from task_dashboard.core.controller import ACTIONS, create_controller
from task_dashboard.core.hierarchy import find_record, normalize_tasks
from task_dashboard.core.store import open_store
from task_dashboard.db.models import (
    TASK_STATUSES,
    CreateSubTaskPayload,
    CreateTaskPayload,
    JiraImportPayload,
)
from task_dashboard.errors import DashboardError


def _get_client() -> ApiClient:
    return ApiClient(open_store(get_config()))


def _fail(message: str):
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose):
    """td - Task Dashboard CLI"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ── Shared options ────────────────────────────────────────────────────────────

_status_choice = click.Choice(TASK_STATUSES, case_sensitive=False)


def _field_options(func):
    """Options shared by the create and edit commands."""
    options = [
        click.option("--description", "-d", default=None, help="Task description"),
        click.option("--summary", "-s", default=None, help="One-line summary"),
        click.option("--repo-url", default=None, help="Repository URL used by actions"),
        click.option("--branch", "base_branch", default=None, help="Base branch"),
        click.option("--status", default=None, type=_status_choice, help="Task status"),
        click.option("--prompt", default=None, help="Prompt for the agent"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _fields(**values) -> dict:
    fields = {k: v for k, v in values.items() if v is not None}
    if "status" in fields:
        fields["status"] = fields["status"].upper()
    return fields


# ── Task Commands ─────────────────────────────────────────────────────────────


@main.group("task")
def task_group():
    """Manage tasks."""
    pass


@task_group.command("list")
@click.option("--json-output", "--json", is_flag=True, help="Output as JSON")
def task_list(json_output):
    """List tasks with their subtasks."""
    try:
        tree = normalize_tasks(_get_client().list_tasks())
    except DashboardError as e:
        _fail(str(e))

    if json_output:
        click.echo(json.dumps([n.to_dict() for n in tree], indent=2))
        return

    if not tree:
        click.echo("No tasks found.")
        return

    for node in tree:
        task = node.record
        marker = " (placeholder)" if node.synthesized else ""
        click.echo(f"  {task.task_id}: {task.title} [{task.status}]{marker}")
        for sub in node.subtasks:
            click.echo(f"    - {sub.action_id}: {sub.title} [{sub.status}]")


@task_group.command("show")
@click.argument("identifier")
def task_show(identifier):
    """Show a task or subtask by task_id or sub_task_id."""
    try:
        tree = normalize_tasks(_get_client().list_tasks())
    except DashboardError as e:
        _fail(str(e))

    task = find_record(tree, identifier)
    if not task:
        click.echo(f"Task not found: {identifier}", err=True)
        sys.exit(1)

    click.echo(f"{'Subtask' if task.is_subtask else 'Task'}: {task.action_id}")
    click.echo(f"  Type: {task.task_type}")
    click.echo(f"  Status: {task.status}")
    if task.is_subtask:
        click.echo(f"  Parent: {task.task_id}")
    if task.summary:
        click.echo(f"  Summary: {task.summary}")
    if task.description:
        click.echo(f"  Description: {task.description}")
    if task.repo_url:
        click.echo(f"  Repo: {task.repo_url}")
    if task.base_branch:
        click.echo(f"  Branch: {task.base_branch}")
    if task.prompt:
        click.echo(f"  Prompt: {task.prompt}")
    if task.agent_summary:
        click.echo(f"  Agent summary: {task.agent_summary}")
    if task.attachment_path:
        click.echo("  Attachments:")
        for a in task.attachment_path:
            click.echo(f"    - {a.filename}: {a.path}")
    if task.additional_json:
        click.echo(f"  Additional JSON: {json.dumps(task.additional_json)}")
    if task.updated_at:
        click.echo(f"  Updated: {task.updated_at}")

    if not task.is_subtask:
        node = next((n for n in tree if n.record is task), None)
        if node and node.subtasks:
            click.echo("  Subtasks:")
            for sub in node.subtasks:
                click.echo(f"    - {sub.action_id}: {sub.title} ({sub.status})")


@task_group.command("add")
@click.argument("task_id")
@_field_options
def task_add(task_id, **values):
    """Create a new top-level task."""
    try:
        task = _get_client().create_task(CreateTaskPayload(task_id=task_id, **_fields(**values)))
    except DashboardError as e:
        _fail(str(e))
    click.echo(f"Created task: {task.task_id} (id {task.id})")
    click.echo(f"  Status: {task.status}")


@task_group.command("edit")
@click.argument("task_id")
@_field_options
def task_edit(task_id, **values):
    """Update fields of a top-level task."""
    fields = _fields(**values)
    if not fields:
        _fail("Nothing to update.")
    try:
        task = _get_client().update_task_record(task_id, fields)
    except DashboardError as e:
        _fail(str(e))
    click.echo(f"Updated task: {task.task_id}")
    click.echo(f"  Status: {task.status}")


# ── Subtask Commands ──────────────────────────────────────────────────────────


@main.group("subtask")
def subtask_group():
    """Manage subtasks."""
    pass


@subtask_group.command("add")
@click.argument("task_id")
@click.argument("sub_task_id")
@_field_options
def subtask_add(task_id, sub_task_id, **values):
    """Create a subtask under TASK_ID."""
    payload = CreateSubTaskPayload(task_id=task_id, sub_task_id=sub_task_id, **_fields(**values))
    try:
        task = _get_client().create_sub_task(payload)
    except DashboardError as e:
        _fail(str(e))
    click.echo(f"Created subtask: {task.sub_task_id} under {task.task_id} (id {task.id})")


@subtask_group.command("edit")
@click.argument("sub_task_id")
@_field_options
def subtask_edit(sub_task_id, **values):
    """Update fields of a subtask."""
    fields = _fields(**values)
    if not fields:
        _fail("Nothing to update.")
    try:
        task = _get_client().update_sub_task_record(sub_task_id, fields)
    except DashboardError as e:
        _fail(str(e))
    click.echo(f"Updated subtask: {task.sub_task_id}")
    click.echo(f"  Status: {task.status}")


# ── Jira Commands ─────────────────────────────────────────────────────────────


@main.group("jira")
def jira_group():
    """Jira integration commands."""
    pass


@jira_group.command("import")
@click.argument("jira_task_id")
@click.option("--repo-url", required=True, help="Repository the issue's work targets")
@click.option("--branch", default="main", help="Base branch")
def jira_import(jira_task_id, repo_url, branch):
    """Import a Jira issue as a task."""
    payload = JiraImportPayload(jira_task_id=jira_task_id, repo_url=repo_url, branch=branch)
    try:
        task = _get_client().import_task_from_jira(payload)
    except DashboardError as e:
        _fail(str(e))
    click.echo(f"Imported: {task.task_id} (id {task.id})")
    click.echo(f"  Summary: {task.title}")


# ── Action Commands ───────────────────────────────────────────────────────────


@main.command("run")
@click.argument("action", type=click.Choice(list(ACTIONS)))
@click.argument("identifier")
def run_action(action, identifier):
    """Run plan, develop or auto-develop for a task or subtask."""
    controller = create_controller(get_config())
    if not controller.load_tasks():
        _fail(controller.state.error)
    record = controller.find_record(identifier)
    if not record:
        click.echo(f"Task not found: {identifier}", err=True)
        sys.exit(1)
    if not controller.run_action(record, action):
        _fail(controller.state.error or "Action failed")

    updated = controller.find_record(identifier) or record
    click.echo(f"{action} requested for {record.action_id}")
    click.echo(f"  Status: {updated.status}")


# ── Demo Commands ─────────────────────────────────────────────────────────────


@main.group("demo")
def demo_group():
    """Manage the local demo store."""
    pass


@demo_group.command("reset")
def demo_reset():
    """Discard demo records; the next read starts from the seed data."""
    from task_dashboard.core.mock_store import MockStore

    config = get_config()
    if not config.demo_mode:
        _fail("Demo mode is off (TD_DEMO_MODE=false); nothing to reset.")
    MockStore(config.state_path).reset()
    click.echo("Demo store reset.")


@demo_group.command("export-seed")
@click.argument("db_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path),
              default=Path("demo_seed.json"), help="Where to write the seed JSON")
def demo_export_seed(db_path, output):
    """Export a backend tasks.db into a seed file for demo mode."""
    from task_dashboard.db.seed_export import export_seed

    try:
        rows = export_seed(db_path, output)
    except sqlite3.Error as e:
        _fail(f"Could not read {db_path}: {e}")
    click.echo(f"Wrote {len(rows)} rows -> {output}")


# ── Dashboard Command ────────────────────────────────────────────────────────


@main.command("ui")
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to listen on")
@click.option("--open/--no-open", default=True, help="Open browser automatically")
def ui_command(host, port, open):
    """Launch the web dashboard."""
    import webbrowser

    from task_dashboard.web.app import run_server

    config = get_config()
    host = host or config.host
    port = port or config.port
    url = f"http://{host}:{port}"
    click.echo(f"Starting dashboard at {url}")
    if open:
        webbrowser.open(url)
    run_server(host=host, port=port)


if __name__ == "__main__":
    main()
