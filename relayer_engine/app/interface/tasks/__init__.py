from __future__ import annotations

from collections.abc import Awaitable, Callable

from .block_indexer_task import block_indexer_task
from .rpc_server_task import rpc_server_task

TaskFn = Callable[..., Awaitable[None]]

TASKS: dict[str, TaskFn] = {
    "block_indexer_task": block_indexer_task,
    "rpc_server_task": rpc_server_task,
}
