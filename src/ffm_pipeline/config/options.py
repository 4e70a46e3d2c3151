# filename: src/ffm_pipeline/config/options.py
"""
Named option access for the configuration builder.

This module provides `OptionSource`, a read-only view over "named options" as
they come out of a command-line parser or an options file, together with the
typed value parsers the builder uses.

Purpose:
    The builder only ever asks three questions about an option: is it present,
    what is its (single) value, and what are its (repeated) values. Keeping
    those questions behind one small class means the builder does not care
    whether the options were parsed by click, loaded from YAML through
    OmegaConf, or written by hand in a test.

    Raw values are kept as strings and parsed here, so that a bad number is
    reported with the option name and the raw text instead of a bare
    `ValueError` from `float()`.

FFM Pipeline Fit:
    `ConfigBuilder.build` takes an `OptionSource`; `cli.build` creates one from
    the merged click parameters and options file. `get_float_namespaces` is
    consumed by the namespace map loader before the builder runs.
"""

import re                                                  # For validating unsigned integer literals.
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import numpy as np                                         # float32 narrowing and unsigned integer ranges.
from omegaconf import DictConfig, OmegaConf                # Options files are loaded as OmegaConf configs.

from ffm_pipeline.config.errors import NumericParseError


_UNSIGNED_RE = re.compile(r"^\+?[0-9]+$")


def _is_set(value: Any) -> bool:
    """Whether a raw option value counts as "present"."""
    if value is None or value is False:
        return False
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return False
    return True


def parse_float(raw: Any, option: Optional[str] = None) -> float:
    """
    Parse a float option value.

    Leading/trailing whitespace and digit separators are rejected, so that
    "0.3" parses but " 0.3" or "1_000.0" do not.
    """
    text = str(raw)
    if text != text.strip() or "_" in text:
        raise NumericParseError(
            f"--{option} expects a number, got: \"{text}\"" if option else f"invalid float literal: \"{text}\"",
            option=option,
            value=text,
        )
    try:
        return float(text)
    except ValueError:
        raise NumericParseError(
            f"--{option} expects a number, got: \"{text}\"" if option else f"invalid float literal: \"{text}\"",
            option=option,
            value=text,
        ) from None


def parse_f32(raw: Any, option: Optional[str] = None) -> float:
    """Parse a float and narrow it to single precision (as stored by the engine)."""
    return float(np.float32(parse_float(raw, option)))


def parse_unsigned(raw: Any, option: Optional[str] = None, dtype: type = np.uint32) -> int:
    """
    Parse an unsigned integer that must fit into `dtype`.

    Args:
        raw: The raw option value.
        option: Option name, used in the error message.
        dtype: A numpy unsigned integer type bounding the value (`np.uint8`,
               `np.uint32`, ...).

    Raises:
        NumericParseError: If `raw` is not a non-negative integer literal or
            does not fit into `dtype`.
    """
    text = str(raw)
    label = f"--{option}" if option else "value"
    if not _UNSIGNED_RE.match(text):
        raise NumericParseError(f"{label} expects an unsigned integer, got: \"{text}\"", option=option, value=text)
    value = int(text)
    upper = int(np.iinfo(dtype).max)
    if value > upper:
        raise NumericParseError(
            f"{label} is out of range (maximum {upper}), got: \"{text}\"", option=option, value=text
        )
    return value


class OptionSource:
    """
    Read-only view over named options.

    A name whose value is missing, `None`, `False` or an empty sequence is
    treated as not present. Values are returned as strings; use the typed
    readers (`float_of`, `unsigned_of`) to parse them.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = {
            name: value for name, value in (values or {}).items() if _is_set(value)
        }

    @classmethod
    def from_click(cls, params: Mapping[str, Any]) -> "OptionSource":
        """Create from click's parameter dict; unset options are None, () or False there."""
        return cls(params)

    @classmethod
    def from_omegaconf(cls, cfg: DictConfig) -> "OptionSource":
        """Create from an OmegaConf config (e.g. a loaded options file)."""
        return cls(OmegaConf.to_container(cfg, resolve=True))

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"OptionSource({self._values!r})"

    def is_present(self, name: str) -> bool:
        return name in self._values

    def value_of(self, name: str) -> Optional[str]:
        """Single value of an option, or None when it is not present."""
        if name not in self._values:
            return None
        value = self._values[name]
        if isinstance(value, (list, tuple)):
            value = value[-1] # A repeated scalar option keeps its last occurrence.
        return str(value)

    def values_of(self, name: str) -> Optional[List[str]]:
        """All values of a repeatable option in the order given, or None when not present."""
        if name not in self._values:
            return None
        value = self._values[name]
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return [str(value)]

    def float_of(self, name: str) -> Optional[float]:
        """
        Single value of an option parsed as a float.

        Returns:
            The parsed value, or None when the option is not present.

        Raises:
            NumericParseError: The value is not a number.
        """
        raw = self.value_of(name)
        return None if raw is None else parse_float(raw, name)

    def unsigned_of(self, name: str, dtype: type = np.uint32) -> Optional[int]:
        """
        Single value of an option parsed as an unsigned integer.

        Args:
            name: The option name.
            dtype: A numpy unsigned integer type bounding the value.

        Returns:
            The parsed value, or None when the option is not present.

        Raises:
            NumericParseError: The value is not an unsigned integer or does
                not fit into `dtype`.
        """
        raw = self.value_of(name)
        return None if raw is None else parse_unsigned(raw, name, dtype)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)


def get_float_namespaces(options: OptionSource) -> Tuple[str, int]:
    """
    Read the float namespace options.

    Returns:
        `(float_namespaces, skip_prefix)`. When `float_namespaces` is absent the
        result is `("", 0)` and `float_namespaces_skip_prefix` is not read.
        The namespace string is returned as given, without validation.
    """
    namespaces = options.value_of("float_namespaces")
    if namespaces is None:
        return "", 0
    skip_prefix = options.unsigned_of("float_namespaces_skip_prefix")
    return namespaces, skip_prefix if skip_prefix is not None else 0
