import asyncio
import inspect
import logging

import typer
import uvicorn
from dotenv import load_dotenv
from InquirerPy import inquirer

from token_gateway.app.config import get_settings
from token_gateway.app.domain.errors import GatewayError
from token_gateway.app.interface.api.app import create_app
from token_gateway.app.interface.tasks import TASKS


load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

app = typer.Typer()
gateway_app = typer.Typer(help="cli for the ERC-20 token gateway.")
app.add_typer(gateway_app, name="gateway")


@gateway_app.command("serve")
def serve() -> None:
    """Run the HTTP gateway."""
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    uvicorn.run(
        create_app(settings=settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


@gateway_app.command("run")
def run() -> None:
    """Run a single gateway operation interactively."""
    task_name = inquirer.select(
        message="Select task:",
        choices=list(TASKS.keys()),
        pointer="❯",
        instruction="Use ↑/↓ to move, Enter to select",
    ).execute()

    task = TASKS[task_name]
    params = inspect.signature(task).parameters

    kwargs: dict[str, object] = {}

    if "address" in params:
        kwargs["address"] = inquirer.text(message="Address (0x...):").execute().strip()
    if "to" in params:
        kwargs["to"] = inquirer.text(message="Recipient address (0x...):").execute().strip()
    if "amount" in params:
        kwargs["amount"] = inquirer.text(message="Amount (decimal tokens):").execute().strip()
    if "limit" in params:
        limit_str = inquirer.text(
            message="Limit (optional, empty = default):",
            default="",
        ).execute()
        kwargs["limit"] = int(limit_str) if limit_str.strip() else None

    try:
        asyncio.run(task(**kwargs))  # type: ignore
    except GatewayError as e:
        typer.secho(f"{type(e).__name__}: {e.reason}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
