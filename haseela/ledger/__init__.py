"""Ledger operations package."""

from haseela.ledger.operations import (
    add_client,
    add_task,
    delete_client,
    delete_task,
    reset_state,
    set_goal,
    toggle_task,
)

__all__ = [
    "add_client",
    "add_task",
    "delete_client",
    "delete_task",
    "reset_state",
    "set_goal",
    "toggle_task",
]
