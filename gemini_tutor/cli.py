import asyncio

import click

from gemini_tutor.config import get_config
from gemini_tutor.errors import TutorError
from gemini_tutor.log import configure_logging


@click.group()
@click.option("--log-level", default=None, help="Override GEMINI_TUTOR_LOG_LEVEL.")
def cli(log_level: str | None):
    configure_logging(log_level or get_config().log_level)


@cli.command()
@click.option("--host", default=None, help="Interface to bind, defaults to GEMINI_TUTOR_UI_HOST.")
@click.option("--port", default=None, type=int, help="Port to bind, defaults to GEMINI_TUTOR_UI_PORT.")
@click.option("--share", is_flag=True, help="Create a public Gradio link.")
def ui(host: str | None, port: int | None, share: bool):
    """Launch the Gradio app."""
    from gemini_tutor.ui.app import create_ui

    config = get_config()
    create_ui().launch(
        server_name=host or config.ui_host,
        server_port=port or config.ui_port,
        share=share,
    )


@cli.command()
@click.argument("text")
@click.option("--preview", default=8, show_default=True, help="Number of leading values to print.")
def embed(text: str, preview: int):
    """Print a summary of the embedding vector of TEXT."""
    from gemini_tutor.llms.models import get_model_service
    from gemini_tutor.ui.embedding import embed as embed_text
    from gemini_tutor.ui.embedding import summarize_vector

    try:
        vector = asyncio.run(embed_text(get_model_service(), text))
    except TutorError as e:
        raise click.ClickException(str(e)) from e
    click.echo(summarize_vector(vector, preview).model_dump_json(indent=2))


@cli.command()
def tools():
    """Print the default tool definitions."""
    from gemini_tutor.tools import default_tools_json

    click.echo(default_tools_json())


if __name__ == "__main__":
    cli()
