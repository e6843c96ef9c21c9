"""Main CLI entry point."""

import typer
from dotenv import load_dotenv

from .check import check
from .common import console
from .issues import issues
from .scan import scan

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="resolved",
    help="Find issue references in code comments and flag the stale ones",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command(name="scan", context_settings={"help_option_names": ["-h", "--help"]})(
    scan
)
app.command(name="issues", context_settings={"help_option_names": ["-h", "--help"]})(
    issues
)
app.command(name="check", context_settings={"help_option_names": ["-h", "--help"]})(
    check
)


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def version() -> None:
    """Show version information."""
    from resolved_refs import __version__

    console.print(f"Resolved v{__version__}")


if __name__ == "__main__":
    app()
