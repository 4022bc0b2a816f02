import typer
import rich_click  # noqa: F401
from .check import check
from .list_plugins import list_plugins
from .schedule import schedule
from lmsched import __version__

app = typer.Typer(
    name="lmsched",
    help="Phase-aware scheduler for legal-markdown remark plugins",
    no_args_is_help=True,
)

@app.command("version")
def version() -> None:
    """Show the lmsched version."""
    typer.echo(f"lmsched v{__version__}")

app.command()(schedule)
app.command()(check)
app.command("list-plugins")(list_plugins)
