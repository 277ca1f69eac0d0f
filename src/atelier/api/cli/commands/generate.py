"""Generate and describe commands - image generation and vision description."""

import asyncio
from pathlib import Path

import typer

from atelier.api.cli.context import load_settings, make_console
from atelier.application.factory import AtelierFactory
from atelier.core.domain.models import ImageReference


def generate(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="What the image should show"),
):
    """Generate an image and describe it with the vision model.

    Examples:
        atelier generate "A futuristic city at sunset, digital art"
    """
    settings = load_settings(ctx)
    out = make_console(ctx)

    if not prompt.strip():
        out.print_error("Prompt is required")
        raise typer.Exit(code=2)

    async def run() -> int:
        async with AtelierFactory(settings) as factory:
            pipeline = factory.create_pipeline()

            with out.console.status("Generating image..."):
                operation = await pipeline.generate(prompt)
            if operation.failed:
                out.print_failure(operation)
                return 1

            with out.console.status("Describing..."):
                await pipeline.drain()

            artifact = operation.result
            out.print_artifact(artifact)
            if artifact.description is None:
                out.print_warning("The image was generated but could not be described.")
            return 0

    raise typer.Exit(code=asyncio.run(run()))


def describe(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Image URL or path to a local JPEG/PNG"),
):
    """Describe an existing image with the vision model.

    Examples:
        atelier describe ./photo.jpg
        atelier describe https://example.com/cat.png
    """
    settings = load_settings(ctx)
    out = make_console(ctx)

    if source.startswith(("http://", "https://")):
        image = ImageReference.from_url(source)
    else:
        path = Path(source)
        if not path.is_file():
            out.print_error("Please upload an image first.")
            raise typer.Exit(code=2)
        image = ImageReference.from_file(path)

    async def run() -> int:
        async with AtelierFactory(settings) as factory:
            pipeline = factory.create_pipeline()
            with out.console.status("Analyzing image..."):
                operation = await pipeline.describe_uploaded(image)
            if operation.failed:
                out.print_failure(operation)
                return 1
            out.console.print(operation.result)
            return 0

    raise typer.Exit(code=asyncio.run(run()))
