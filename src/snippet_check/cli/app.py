import logging
from typing import Annotated

import typer

from snippet_check.cli.serve import serve_app
from snippet_check.cli.validate import validate

app = typer.Typer(
    name="snippet-check",
    help="Snippet Check CLI — type-check library snippets in memory.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def _configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


app.command("validate")(validate)
app.add_typer(serve_app, name="serve")


def main() -> None:
    app()
