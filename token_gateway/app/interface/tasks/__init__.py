from __future__ import annotations

from collections.abc import Awaitable, Callable

from .gateway_tasks import balance_task, history_task, mint_task, transfer_task

TaskFn = Callable[..., Awaitable[None]]

TASKS: dict[str, TaskFn] = {
    "balance": balance_task,
    "mint": mint_task,
    "transfer": transfer_task,
    "history": history_task,
}
