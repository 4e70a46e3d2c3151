# filename: src/ffm_pipeline/config/errors.py
"""
Exceptions raised while building or loading a model configuration.

Every failure carries the offending option name and raw value (when there is
one) so that the message alone is enough for a user to fix the command line.
All of them derive from `ValueError`: a bad configuration is a user-input
error, not a transient fault, and callers that only care about "invalid
input" can catch `ValueError`.

FFM Pipeline Fit:
    Raised by `config.options`, `config.combo`, `config.builder`,
    `config.config` and the `namespaces` registries. Only the CLI entry points
    catch them, to turn them into a non-zero exit status.
"""

from typing import Any, Optional


class ConfigError(ValueError):
    """Base class for all configuration errors."""

    def __init__(self, message: str, option: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.message = message
        self.option = option  # Name of the offending option, e.g. "ffm_k".
        self.value = value    # Raw value as given by the user.

    def __str__(self):
        return self.message


class FormatError(ConfigError):
    """Malformed mini-language input (weight delimiters, `letters-k` shorthand, transforms)."""


class NamespaceLookupError(ConfigError):
    """A namespace letter is unknown, or reserved when defining a transform."""

    def __init__(self, message: str, namespace_char: Optional[str] = None, option: Optional[str] = None):
        super().__init__(message, option=option, value=namespace_char)
        self.namespace_char = namespace_char


class NumericParseError(ConfigError):
    """A number was required but the raw value does not parse as one."""


class BoundsError(ConfigError):
    """A value lies outside a fixed system range (e.g. the maximum ffm rank)."""


class ConsistencyError(ConfigError):
    """Options that are not allowed together, or a missing precondition of a mode."""


class RestrictedValueError(ConfigError):
    """An option was given a value outside of its fixed allowed set."""


class RecordError(ConfigError):
    """A saved configuration record cannot be turned back into a `ModelInstance`."""


class NamespaceMapError(ConfigError):
    """The namespace map source (`vw_namespace_map.csv`) is malformed."""
