"""
Main CLI entry point for blockfetch.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from blockfetch.core import Config, load_config
from blockfetch.core.errors import BlockFetchError
from blockfetch.core.paths import block_file_path
from blockfetch.core.sizes import BACKUP_BLOCK_SIZE_PARAMETER, block_size_from_parameters
from blockfetch.storage import BlockReader, LocalDirectoryDriver
from blockfetch.storage.compression import supported_codecs


def configure_logging(verbose: bool):
    """Route library logging to stderr (DEBUG with --verbose, else WARNING)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(config_path: Optional[str]) -> Config:
    if not config_path:
        return Config()
    try:
        return load_config(config_path)
    except BlockFetchError as e:
        raise click.ClickException(str(e))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """blockfetch - Resilient retrieval of content-addressed backup blocks."""
    configure_logging(verbose)


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.argument("volume")
@click.argument("checksum")
@click.option("--compression", type=click.Choice(supported_codecs()), default=None,
              help="Codec the block was written with (default from config)")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="JSON config file")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write block content to file")
def fetch(root, volume, checksum, compression, config_path, output):
    """Fetch and verify a block from a local backup store directory."""
    config = _load_config(config_path)
    reader = BlockReader(LocalDirectoryDriver(root), config)

    try:
        content = reader.fetch_block(volume, checksum, compression).read()
    except BlockFetchError as e:
        raise click.ClickException(str(e))

    if output:
        Path(output).write_bytes(content)
        click.echo(f"Wrote {len(content)} bytes to {output}")
    else:
        click.echo(f"Block {checksum} verified: {len(content)} bytes")


@cli.command("block-path")
@click.argument("volume")
@click.argument("checksum")
def block_path_cmd(volume, checksum):
    """Print the backup store path of a block."""
    try:
        click.echo(block_file_path(volume, checksum))
    except ValueError as e:
        raise click.ClickException(str(e))


@cli.command("block-size")
@click.argument("value", required=False, default="")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="JSON config file")
def block_size(value, config_path):
    """Print the block size a backupBlockSize parameter resolves to."""
    config = _load_config(config_path)
    try:
        size = block_size_from_parameters(
            {BACKUP_BLOCK_SIZE_PARAMETER: value}, default=config.default_block_size
        )
    except BlockFetchError as e:
        raise click.ClickException(str(e))
    click.echo(str(size))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
