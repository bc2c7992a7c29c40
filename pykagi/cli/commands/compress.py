import dataclasses
from typing import Optional

import click

from pykagi.cli._root import cli_root
from pykagi.cli.config import CLIConfig
from pykagi.cli.runtime import pykagi_exception_manager
from pykagi.cli.utils import logger, readable_file, writable_file
from pykagi.config.settings import CompressionSettings
from pykagi.misc import OutputPathError
from pykagi.operations import compress_pdf_with_summary

__all__ = ['compress']


def _select_settings(ctx: click.Context, **overrides) -> CompressionSettings:
    cli_config: Optional[CLIConfig] = ctx.obj.config
    if cli_config is not None:
        settings = cli_config.compression
    else:
        settings = CompressionSettings()
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return dataclasses.replace(settings, **overrides)


@cli_root.command(help='shrink PDF files by recompressing images', name='compress')
@click.argument('infile', type=readable_file)
@click.argument('outfile', type=writable_file)
@click.option(
    '--quality',
    help='JPEG quality level (1-95)',
    required=False,
    type=click.IntRange(1, 95),
)
@click.option(
    '--max-width',
    help='maximal image width in pixels',
    required=False,
    type=click.IntRange(min=1),
)
@click.option(
    '--max-height',
    help='maximal image height in pixels',
    required=False,
    type=click.IntRange(min=1),
)
@click.pass_context
def compress(
    ctx: click.Context, infile, outfile, quality, max_width, max_height
):
    settings = _select_settings(
        ctx, jpeg_quality=quality, max_width=max_width, max_height=max_height
    )
    logger.debug(f"Compressing {infile} with {settings}.")
    with pykagi_exception_manager():
        output, label, summary = compress_pdf_with_summary(
            infile, settings, strict=not ctx.obj.lenient
        )
        try:
            with open(outfile, 'wb') as outf:
                outf.write(output)
        except OSError as e:
            raise OutputPathError(
                f"Failed to write {outfile}: {e.strerror or e}"
            ) from e

    click.echo(label)
    click.echo(
        f"{summary.recompressed} image(s) recompressed, "
        f"{summary.skipped} skipped."
    )
    for reason, count in sorted(summary.skip_reasons.items()):
        click.echo(f"  {reason}: {count}")
