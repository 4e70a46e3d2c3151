# filename: src/ffm_pipeline/cli/inspect.py
"""
Saved configuration inspection command-line interface.

`ffm-inspect model/model_config.yaml` loads a configuration record written by
`ffm-build` (or by an older release, in which case missing fields take their
record defaults), re-checks its invariants and prints it as YAML.
"""

import logging
from pathlib import Path

import click

from ffm_pipeline.config import ConfigError, config_to_yaml, load_config, validate_config
from ffm_pipeline.utils import log_config, setup_logger


logger = logging.getLogger(__name__)


@click.command()
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]), default="WARNING")
def inspect_command(config_path: Path, log_level: str):
    """Load, validate and print a saved model configuration."""
    setup_logger(log_level=log_level)

    try:
        model_instance = load_config(config_path)
        validate_config(model_instance)
    except ConfigError as e:
        logger.error(f"Invalid configuration in {config_path}: {e}")
        raise click.ClickException(str(e)) from e

    log_config(model_instance, logger)
    click.echo(config_to_yaml(model_instance))


def main():
    """Main entry point for the inspection CLI."""
    inspect_command()


if __name__ == "__main__":
    main()
