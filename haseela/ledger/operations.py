"""
Ledger Operations

Every state transition the user can trigger. Each operation takes the
current AppState and returns a new one; the input is never modified.

RULES:
- Invalid input (blank name, non-numeric price, unknown id) returns the
  SAME state object, unchanged. Callers can detect a no-op with `is`.
- Nothing is merged: setting a goal replaces the period's goal, and
  deleting a client drops every one of its tasks.
- Timestamps default to local now; pass `now` to pin them in tests.
"""

from datetime import datetime
from typing import Any, Optional

from haseela.audit import AuditLogger
from haseela.models.audit import AuditEventBuilder
from haseela.models.ledger import AppState, Client, MonthlyGoal, Task, local_now
from haseela.validation import LedgerInputValidator, parse_amount


_validator = LedgerInputValidator()
_audit = AuditLogger("haseela.ledger")


def _replace_client(state: AppState, updated: Client) -> AppState:
    clients = [updated if client.id == updated.id else client for client in state.clients]
    return state.model_copy(update={"clients": clients})


def _rejected(state: AppState, operation: str, reasons: list[str]) -> AppState:
    _audit.log_mutation_rejected(operation, reasons)
    return state


def add_client(state: AppState, name: Any) -> AppState:
    """Append a new client with no tasks and a palette colour."""
    result = _validator.validate_client_name(name)
    if not result.is_valid:
        return _rejected(state, "add_client", result.messages)

    client = Client(name=name.strip())
    _audit.log(AuditEventBuilder.client_added(client.id, client.name))
    return state.model_copy(update={"clients": [*state.clients, client]})


def delete_client(state: AppState, client_id: str) -> AppState:
    """
    Remove a client and all of its tasks.

    Destructive: the caller is expected to confirm with the user first.
    """
    client = state.find_client(client_id)
    if client is None:
        return _rejected(state, "delete_client", [f"Unknown client: {client_id}"])

    _audit.log(AuditEventBuilder.client_deleted(client.id, len(client.tasks)))
    clients = [c for c in state.clients if c.id != client_id]
    return state.model_copy(update={"clients": clients})


def add_task(
    state: AppState,
    client_id: str,
    title: Any,
    price: Any,
    now: Optional[datetime] = None,
) -> AppState:
    """Append an open task to the client's task list."""
    client = state.find_client(client_id)
    if client is None:
        return _rejected(state, "add_task", [f"Unknown client: {client_id}"])

    result = _validator.validate_task(title, price)
    if not result.is_valid:
        return _rejected(state, "add_task", result.messages)

    task = Task(
        title=title.strip(),
        price=parse_amount(price),
        is_completed=False,
        created_at=now or local_now(),
    )
    _audit.log(AuditEventBuilder.task_added(client.id, task.id, task.price))
    updated = client.model_copy(update={"tasks": [*client.tasks, task]})
    return _replace_client(state, updated)


def delete_task(state: AppState, client_id: str, task_id: str) -> AppState:
    """
    Remove one task from a client.

    Destructive: the caller is expected to confirm with the user first.
    """
    client = state.find_client(client_id)
    if client is None or client.find_task(task_id) is None:
        return _rejected(state, "delete_task", [f"Unknown task: {client_id}/{task_id}"])

    _audit.log(AuditEventBuilder.task_deleted(client.id, task_id))
    updated = client.model_copy(
        update={"tasks": [task for task in client.tasks if task.id != task_id]}
    )
    return _replace_client(state, updated)


def toggle_task(
    state: AppState,
    client_id: str,
    task_id: str,
    now: Optional[datetime] = None,
) -> AppState:
    """
    Flip a task between open and completed.

    Completing stamps completed_at with now; reopening clears it. A task
    re-completed in a later month therefore moves to that month.
    """
    client = state.find_client(client_id)
    if client is None or client.find_task(task_id) is None:
        return _rejected(state, "toggle_task", [f"Unknown task: {client_id}/{task_id}"])

    tasks = []
    for task in client.tasks:
        if task.id == task_id:
            completing = not task.is_completed
            task = task.model_copy(update={
                "is_completed": completing,
                "completed_at": (now or local_now()) if completing else None,
            })
            _audit.log(AuditEventBuilder.task_toggled(client.id, task.id, completing))
        tasks.append(task)

    return _replace_client(state, client.model_copy(update={"tasks": tasks}))


def set_goal(
    state: AppState,
    amount: Any,
    now: Optional[datetime] = None,
) -> AppState:
    """
    Set the earnings target for the current month.

    Any existing goal for the month is dropped and a new one appended.
    """
    result = _validator.validate_goal_amount(amount)
    if not result.is_valid:
        return _rejected(state, "set_goal", result.messages)

    now = now or local_now()
    goal = MonthlyGoal(month=now.month, year=now.year, target_amount=parse_amount(amount))
    others = [g for g in state.goals if not g.is_for(goal.month, goal.year)]

    _audit.log(AuditEventBuilder.goal_set(goal.month, goal.year, goal.target_amount))
    return state.model_copy(update={"goals": [*others, goal]})


def reset_state(state: AppState) -> AppState:
    """Drop all clients and goals, keeping the currency."""
    _audit.log(AuditEventBuilder.state_reset())
    return AppState.empty(currency=state.currency)
