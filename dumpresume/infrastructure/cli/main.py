import typer

from .commands import (
    checkpoint as checkpoint_cmd,
    import_dump as import_cmd,
    stats as stats_cmd,
)

app = typer.Typer(help="dumpresume CLI")

app.add_typer(import_cmd.app, name="import")
app.add_typer(checkpoint_cmd.app, name="checkpoint")
app.add_typer(stats_cmd.app, name="stats")


if __name__ == "__main__":
    app()
