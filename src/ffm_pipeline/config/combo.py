# filename: src/ffm_pipeline/config/combo.py
"""
Parsers for the namespace mini-language.

Feature combinations and FFM fields are written on the command line as
strings of namespace letters:

* `--keep A`, `--interactions BA:1.5`: letters, optionally followed by one
  `:<weight>`. Each string becomes one `FeatureComboDesc`.
* `--lrqfa ABC-8`: letters and an FFM rank. Each letter becomes its own
  single-namespace field.
* `--ffm_field AB`: letters only. The whole string becomes one field.

Letters are resolved through an injected resolver (any object with a
`resolve(letter) -> int` method, normally a `NamespaceResolver`). Letter order
is preserved everywhere. A parser either returns a complete result or raises;
nothing is returned half-built.
"""

from typing import List, Optional, Protocol, Tuple

import numpy as np

from ffm_pipeline.config.config import FFM_MAX_K, FeatureComboDesc, FieldGroup
from ffm_pipeline.config.errors import BoundsError, FormatError, NamespaceLookupError
from ffm_pipeline.config.options import parse_f32, parse_unsigned


class Resolver(Protocol):
    def resolve(self, namespace_char: str) -> int:
        ...


def resolve_letters(
    namespaces_str: str,
    resolver: Resolver,
    option: Optional[str] = None,
    raw: Optional[str] = None,
) -> List[int]:
    """
    Resolve every letter of `namespaces_str`, in order.

    Args:
        namespaces_str: The namespace letters.
        resolver: Resolves a namespace letter to its index.
        option: Option the letters came from; when given, a lookup failure is
                re-raised naming the option and the raw option value.
        raw: The full option value; defaults to `namespaces_str`.

    Raises:
        NamespaceLookupError: A letter is not a known namespace.
    """
    try:
        return [resolver.resolve(namespace_char) for namespace_char in namespaces_str]
    except NamespaceLookupError as e:
        if option is None:
            raise
        raw = namespaces_str if raw is None else raw
        raise NamespaceLookupError(
            f"{e.message} (--{option} \"{raw}\")",
            namespace_char=e.namespace_char,
            option=option,
        ) from e


def parse_feature_combo_desc(s: str, resolver: Resolver, option: Optional[str] = None) -> FeatureComboDesc:
    """
    Parse one `--keep` / `--interactions` value.

    Args:
        s: Namespace letters with an optional `:<weight>` suffix, e.g. "BA:1.5".
        resolver: Resolves a namespace letter to its index.
        option: Option the value came from, for error messages.

    Returns:
        The `FeatureComboDesc`; weight 1.0 when no suffix is given.

    Raises:
        FormatError: More than one ":" or no namespace letters.
        NumericParseError: The weight is not a number.
        NamespaceLookupError: A letter is not a known namespace.
    """
    vsplit = s.split(":") # ":" separates the weight.
    if len(vsplit) > 2:
        raise FormatError(f"only one value parameter allowed (denoted with \":\"): \"{s}\"", option=option, value=s)

    combo_weight = 1.0
    if len(vsplit) == 2:
        combo_weight = parse_f32(vsplit[1], option)

    namespaces_str = vsplit[0]
    if not namespaces_str:
        raise FormatError(f"feature combination needs at least one namespace: \"{s}\"", option=option, value=s)

    return FeatureComboDesc(
        feature_indices=tuple(resolve_letters(namespaces_str, resolver, option, s)),
        weight=combo_weight,
    )


def check_ffm_k(ffm_k: int, option: str = "ffm_k") -> int:
    """
    Check an FFM rank against `FFM_MAX_K`.

    Args:
        ffm_k: The parsed rank.
        option: Option the rank came from (`ffm_k` or `lrqfa`).

    Returns:
        `ffm_k`, unchanged.

    Raises:
        BoundsError: `ffm_k` exceeds `FFM_MAX_K`.
    """
    if ffm_k > FFM_MAX_K:
        raise BoundsError(f"Maximum ffm_k is: {FFM_MAX_K}, passed: {ffm_k}", option=option, value=ffm_k)
    return ffm_k


def parse_lrqfa(s: str, resolver: Resolver) -> Tuple[List[FieldGroup], int]:
    """
    Parse the `--lrqfa <letters>-<k>` shorthand.

    Unlike Vowpal Wabbit, the rank is separated by "-" rather than following
    the letters directly.

    Returns:
        `(fields, k)` where `fields` holds one single-index field per letter.

    Raises:
        FormatError: Not exactly one "-".
        NamespaceLookupError: A letter is not a known namespace.
        NumericParseError: `k` is not an unsigned integer.
        BoundsError: `k` exceeds `FFM_MAX_K`.
    """
    vsplit = s.split("-")
    if len(vsplit) != 2:
        raise FormatError(
            f"--lrqfa takes namespaces-k, example: \"ABC-12\", your string was: \"{s}\"",
            option="lrqfa",
            value=s,
        )
    namespaces_str, k_str = vsplit
    ffm_fields = [[index] for index in resolve_letters(namespaces_str, resolver, "lrqfa", s)]
    ffm_k = parse_unsigned(k_str, "lrqfa", np.uint32)
    return ffm_fields, check_ffm_k(ffm_k, "lrqfa")


def parse_ffm_field(s: str, resolver: Resolver, option: str = "ffm_field") -> FieldGroup:
    """Parse one `--ffm_field` value; all of its letters form a single field."""
    return resolve_letters(s, resolver, option)
