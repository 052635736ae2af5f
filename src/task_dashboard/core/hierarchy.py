"""Build the task tree shown by the dashboard from a flat record list."""

from collections.abc import Iterable

from task_dashboard.db.models import TaskNode, TaskRecord


def _placeholder_for(rec: TaskRecord) -> TaskNode:
    """Synthesize a top-level node for a task_id seen only through subtasks."""
    parent = TaskRecord(
        id=rec.id,
        task_id=rec.task_id,
        sub_task_id=None,
        task_type="TASK",
        description="",
        summary=None,
        repo_url=rec.repo_url,
        base_branch=rec.base_branch,
        status=rec.status,
        prompt="",
        agent_summary=None,
        created_at=rec.created_at,
        updated_at=rec.updated_at,
    )
    return TaskNode(record=parent, synthesized=True)


def normalize_tasks(records: Iterable[TaskRecord]) -> list[TaskNode]:
    """Group records into top-level nodes, each owning its subtasks.

    Top-level records replace any earlier explicit record for the same
    task_id. Everything else is appended to the node for its task_id,
    creating a placeholder parent the first time one is needed. A
    placeholder is kept even if the real top-level record turns up later
    in the same list; that record then lands among the placeholder's
    subtasks. Nodes are ordered by their id compared as strings, highest
    first.
    """
    by_task_id: dict[str, TaskNode] = {}

    for rec in records:
        existing = by_task_id.get(rec.task_id)
        is_top_level = rec.task_type == "TASK" and not rec.sub_task_id

        if is_top_level and not (existing and existing.synthesized):
            subtasks = existing.subtasks if existing else []
            by_task_id[rec.task_id] = TaskNode(record=rec, subtasks=subtasks)
            continue

        if existing is None:
            existing = _placeholder_for(rec)
            by_task_id[rec.task_id] = existing
        existing.subtasks.append(rec)

    return sorted(by_task_id.values(), key=lambda n: str(n.record.id), reverse=True)


def flatten_tree(nodes: Iterable[TaskNode]) -> list[TaskRecord]:
    """Return the stored records of a tree, parents before their subtasks."""
    flat = []
    for node in nodes:
        if not node.synthesized:
            flat.append(node.record)
        flat.extend(node.subtasks)
    return flat


def find_record(nodes: Iterable[TaskNode], identifier: str) -> TaskRecord | None:
    """Find a record by sub_task_id, falling back to a top-level task_id."""
    nodes = list(nodes)
    for node in nodes:
        for sub in node.subtasks:
            if sub.sub_task_id == identifier:
                return sub
    for node in nodes:
        if node.record.task_id == identifier:
            return node.record
    return None


def find_node(nodes: Iterable[TaskNode], task_id: str) -> TaskNode | None:
    return next((n for n in nodes if n.record.task_id == task_id), None)
