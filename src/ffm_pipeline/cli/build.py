# filename: src/ffm_pipeline/cli/build.py
"""
Model configuration command-line interface.

This module provides the `ffm-build` command: it reads Vowpal-Wabbit-style
options, folds them into a validated `ModelInstance` and saves the result so
that training and prediction can load it without re-parsing options.

Purpose:
    To turn a command line such as

        ffm-build --namespace-map data/ --keep A --keep B --interactions AB:0.5 \
                  --lrqfa AB-8 -l 0.1 --adaptive -o model/model_config.yaml

    into a configuration record, failing with a readable message (exit status
    1) when the options are inconsistent. Options can also be kept in a YAML
    file (`--options-file`); values given on the command line take precedence
    over the file.

FFM Pipeline Fit:
    This is the first step of a training run. The namespace map is loaded
    here (with the float namespace options applied), then `ConfigBuilder`
    does all option interpretation.
"""

import logging                    # For logging progress and errors.
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click                      # The library used to build the command-line interface.
import yaml
from omegaconf import DictConfig, OmegaConf   # Options files are merged under the command line.
from omegaconf.errors import OmegaConfBaseException

from ffm_pipeline.config import (
    ConfigBuilder,
    ConfigError,
    FormatError,
    OptionSource,
    config_to_yaml,
    get_float_namespaces,
    save_config,
)
from ffm_pipeline.namespaces import NamespaceMap
from ffm_pipeline.utils import setup_logger


logger = logging.getLogger(__name__)

# Parameters of the command that are not model options.
_COMMAND_PARAMS = ("namespace_map", "options_file", "output", "log_level", "log_file")


def collect_options(params: Dict[str, Any], options_file: Optional[Path] = None) -> OptionSource:
    """
    Merge the options file (if any) with the command-line parameters.

    Unset command-line parameters (None, empty tuples, False flags) do not
    override values from the file.

    Raises:
        FormatError: The options file is not valid YAML, is not a mapping, or
            cannot be merged with the command-line values.
    """
    cli_values = {
        name: list(value) if isinstance(value, tuple) else value
        for name, value in params.items()
        if name not in _COMMAND_PARAMS
    }
    cli_options = OptionSource.from_click(cli_values)
    if options_file is None:
        return cli_options

    try:
        file_cfg = OmegaConf.load(options_file)
    except (yaml.YAMLError, OmegaConfBaseException) as e:
        raise FormatError(f"Cannot read options file {options_file}: {e}", option="options_file",
                          value=str(options_file)) from e
    if not isinstance(file_cfg, DictConfig):
        raise FormatError(f"Options file {options_file} must contain a mapping of option names to values",
                          option="options_file", value=str(options_file))

    try:
        merged = OmegaConf.merge(file_cfg, OmegaConf.create(cli_options.to_dict()))
        return OptionSource.from_omegaconf(merged)
    except OmegaConfBaseException as e:
        raise FormatError(f"Cannot merge options file {options_file}: {e}", option="options_file",
                          value=str(options_file)) from e


@click.command()
@click.option("--namespace-map", "namespace_map", type=click.Path(exists=True, path_type=Path), required=True,
              help="vw_namespace_map.csv, or the directory containing it.")
@click.option("--options-file", "options_file", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="YAML file with option values; command-line values take precedence.")
@click.option("--output", "-o", "output", type=click.Path(dir_okay=False, path_type=Path),
              help="Where to save the configuration (.yaml, .yml or .json). Printed to stdout if omitted.")
@click.option("--log-level", "log_level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]), default="INFO")
@click.option("--log-file", "log_file", type=click.Path(dir_okay=False, path_type=Path), help="Optional log file.")
# Compatibility mode
@click.option("--vwcompat", is_flag=True, help="Mirror Vowpal Wabbit defaults; requires --keep, --hash all and --sgd.")
@click.option("--hash", "hash", help="Feature hashing mode; only 'all' is supported.")
# Features
@click.option("--keep", multiple=True, help="Namespace letters to keep, optionally with ':<weight>'. Repeatable.")
@click.option("--interactions", multiple=True, help="Namespace letters to cross, optionally with ':<weight>'. Repeatable.")
@click.option("--transform_namespace", multiple=True, help="Namespace transform, e.g. 'T=BinnerSqrt(A)(20.0)'. Repeatable.")
@click.option("--float_namespaces", help="Letters of namespaces holding raw float values.")
@click.option("--float_namespaces_skip_prefix", help="Number of characters to skip in float namespace values.")
@click.option("--noconstant", is_flag=True, help="Do not add the constant (bias) feature.")
@click.option("-b", "--bit_precision", help="Number of bits of the base hashing space.")
# Field-aware factorization machine
@click.option("--lrqfa", help="FFM shorthand '<letters>-<k>': one field per letter and rank k.")
@click.option("--ffm_field", multiple=True, help="Namespace letters forming one FFM field. Repeatable.")
@click.option("--ffm_k", help="FFM rank (latent vector length).")
@click.option("--ffm_bit_precision", help="Number of bits of the FFM hashing space.")
@click.option("--ffm_k_threshold", help="FFM k threshold.")
@click.option("--ffm_init_center", help="Center of the FFM weight initialization.")
@click.option("--ffm_init_width", help="Width of the FFM weight initialization.")
@click.option("--ffm_init_zero_band", help="Share (0.0-1.0) of ffm_init_width initialized to zero.")
# Learning
@click.option("-l", "--learning_rate", help="Learning rate.")
@click.option("--ffm_learning_rate", help="FFM learning rate; defaults to --learning_rate.")
@click.option("--minimum_learning_rate", help="Lower bound of the learning rate.")
@click.option("--power_t", help="Learning rate decay exponent.")
@click.option("--ffm_power_t", help="FFM learning rate decay exponent; defaults to --power_t.")
@click.option("--init_acc_gradient", help="Initial accumulated gradient (not with --vwcompat).")
@click.option("--ffm_init_acc_gradient", help="FFM initial accumulated gradient; defaults to --init_acc_gradient.")
@click.option("--sgd", is_flag=True, help="Use plain SGD.")
@click.option("--adaptive", is_flag=True, help="Use Adagrad; wins over --sgd.")
@click.option("--link", help="Link function; only 'logistic' is supported.")
@click.option("--loss_function", help="Loss function; only 'logistic' is supported.")
@click.option("--l2", help="L2 regularization; only 0.0 is supported.")
def build_command(
    namespace_map: Path,
    options_file: Optional[Path],
    output: Optional[Path],
    log_level: str,
    log_file: Optional[Path],
    **model_options: Any,
):
    """
    Build and validate a model configuration.

    Every model option is kept as raw text here; parsing and validation
    happen in `ConfigBuilder`, so errors name the option and its value.
    """
    # The record goes to stdout when no output file is given; keep the log off it.
    setup_logger(log_level=log_level, log_file=log_file, stream=sys.stderr if output is None else None)

    try:
        options = collect_options(model_options, options_file)
        logger.debug(f"Model options: {options}")

        vw_map = NamespaceMap.from_file(namespace_map, get_float_namespaces(options))
        logger.info(f"Loaded {vw_map.num_namespaces} namespaces from {namespace_map}")

        model_instance = ConfigBuilder(vw_map).build(options)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        raise click.ClickException(str(e)) from e

    logger.info(
        f"Built configuration with {len(model_instance.feature_combo_descs)} feature combinations "
        f"and {len(model_instance.ffm_fields)} FFM fields (ffm_k={model_instance.ffm_k})"
    )

    if output is not None:
        save_config(model_instance, output)
    else:
        click.echo(config_to_yaml(model_instance))


def main():
    """Main entry point for the configuration CLI."""
    build_command()


if __name__ == "__main__":
    main()
