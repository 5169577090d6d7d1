"""Run context for log correlation.

One run id per pipeline invocation; the actor is the local player the run
acts for. Both land on every trace event emitted inside the run.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

_run_id_var: ContextVar[str | None] = ContextVar("run_id", default=None)
_actor_id_var: ContextVar[str | None] = ContextVar("actor_id", default=None)


def new_run_id() -> str:
    return uuid.uuid4().hex


def get_run_id() -> str | None:
    return _run_id_var.get()


def get_actor_id() -> str | None:
    return _actor_id_var.get()


@contextmanager
def run_context(*, run_id: str | None = None, actor_id: str | None = None) -> Iterator[str]:
    """Bind a run id (generated when omitted) and actor for the enclosed block."""
    run_id = run_id or new_run_id()
    run_token = _run_id_var.set(run_id)
    actor_token = _actor_id_var.set(actor_id)
    try:
        yield run_id
    finally:
        _actor_id_var.reset(actor_token)
        _run_id_var.reset(run_token)
