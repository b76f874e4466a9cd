import asyncio
import inspect
import logging
from typing import Optional

import typer
from dotenv import load_dotenv
from InquirerPy import inquirer

load_dotenv()

from relayer_engine.app.config import settings  # noqa: E402
from relayer_engine.app.interface.tasks import TASKS  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

app = typer.Typer()
relayer_app = typer.Typer(help="cli for the block indexer and the JSON-RPC server.")
app.add_typer(relayer_app, name="relayer")


@relayer_app.command("run")
def run(
    task: Optional[str] = typer.Option(None, "--task", help=f"One of: {', '.join(TASKS)}"),
    debug: bool = typer.Option(False, "--debug", help="Verbose logging."),
) -> None:
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)

    task_name = task
    if task_name is None:
        task_name = inquirer.select(
            message="Select task:",
            choices=list(TASKS.keys()),
            pointer="❯",
            instruction="Use ↑/↓ to move, Enter to select",
        ).execute()
    if task_name not in TASKS:
        raise typer.BadParameter(f"unknown task {task_name!r}", param_hint="--task")

    task_fn = TASKS[task_name]
    params = inspect.signature(task_fn).parameters

    kwargs: dict[str, object] = {}
    if "chain_id" in params:
        kwargs["chain_id"] = settings.chain_id
    if "host" in params:
        kwargs["host"] = settings.rpc_host
    if "port" in params:
        kwargs["port"] = settings.rpc_port

    try:
        asyncio.run(task_fn(**kwargs))
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Interrupted")


def main() -> None:
    app()


if __name__ == "__main__":
    LOGO = r"""
      --- Relayer Engine CLI ---
    """
    typer.echo(LOGO)
    main()
