# filename: src/ffm_pipeline/namespaces/transforms.py
"""
Namespace transforms and namespace letter resolution.

A namespace transform derives a new namespace from existing ones, for example
binning a float namespace: `--transform_namespace "T=BinnerSqrt(A)(20.0)"`
declares namespace `T`, computed by `BinnerSqrt` from namespace `A` with
parameter 20.0. The transform itself is evaluated by the training engine;
this module only records the definitions and hands out indices for the new
letters so that `--keep T` or `--interactions AT` can refer to them.

Purpose:
    To provide the two external capabilities the configuration builder needs:
    1. **Transform registry:** `NamespaceTransforms` stores transform
       definitions and is persisted as part of the model configuration.
    2. **Letter resolution:** `NamespaceResolver` turns a single namespace
       letter into a feature index, looking at the namespace map first and at
       the transforms second.

FFM Pipeline Fit:
    `ConfigBuilder` registers every `--transform_namespace` value before any
    `--keep`, `--interactions`, `--lrqfa` or `--ffm_field` value is parsed,
    then resolves letters through a `NamespaceResolver`. The parsers in
    `config.combo` accept any object with a `resolve(letter) -> int` method,
    so tests can substitute a plain dictionary-backed stub.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ffm_pipeline.config.errors import FormatError, NamespaceLookupError, RecordError
from ffm_pipeline.config.options import parse_float
from ffm_pipeline.namespaces.vwmap import NamespaceMap


logger = logging.getLogger(__name__)

_TRANSFORM_RE = re.compile(
    r"^(?P<to>[^=\s])=(?P<function>[A-Za-z_][A-Za-z0-9_]*)"
    r"\((?P<sources>[^()]*)\)"
    r"(?:\((?P<parameters>[^()]*)\))?$"
)


@dataclass(frozen=True)
class NamespaceTransform:
    to_namespace: str
    function: str
    from_namespaces: Tuple[str, ...]
    parameters: Tuple[float, ...]
    namespace_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "to_namespace": self.to_namespace,
            "function": self.function,
            "from_namespaces": list(self.from_namespaces),
            "parameters": list(self.parameters),
            "namespace_index": self.namespace_index,
        }


@dataclass
class NamespaceTransforms:
    """Ordered registry of namespace transform definitions."""

    transforms: List[NamespaceTransform] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.transforms)

    def copy(self) -> "NamespaceTransforms":
        return NamespaceTransforms(list(self.transforms))

    def lookup(self, namespace_char: str) -> Optional[int]:
        for transform in self.transforms:
            if transform.to_namespace == namespace_char:
                return transform.namespace_index
        return None

    def add_transform_namespace(self, namespace_map: NamespaceMap, definition: str) -> NamespaceTransform:
        """
        Parse and register one transform definition.

        Args:
            namespace_map: The namespace map the source letters refer to.
            definition: `<to>=<Function>(<from letters, comma separated>)[(<float parameters>)]`.

        Returns:
            The registered `NamespaceTransform`.

        Raises:
            FormatError: If the definition does not follow the syntax above.
            NamespaceLookupError: If the target letter is reserved (declared in
                the namespace map or by an earlier transform) or a source
                letter is unknown.
        """
        match = _TRANSFORM_RE.match(definition)
        if match is None:
            raise FormatError(
                f"--transform_namespace takes \"<to>=<Function>(<from>)(<parameters>)\", "
                f"example: \"T=BinnerSqrt(A)(20.0)\", your string was: \"{definition}\"",
                option="transform_namespace",
                value=definition,
            )

        to_namespace = match.group("to")
        if to_namespace in namespace_map or self.lookup(to_namespace) is not None:
            raise NamespaceLookupError(
                f"Namespace \"{to_namespace}\" is reserved and cannot be the target of a transform: \"{definition}\"",
                namespace_char=to_namespace,
                option="transform_namespace",
            )

        from_namespaces = tuple(s.strip() for s in match.group("sources").split(","))
        if from_namespaces == ("",):
            raise FormatError(
                f"--transform_namespace needs at least one source namespace: \"{definition}\"",
                option="transform_namespace",
                value=definition,
            )
        for namespace_char in from_namespaces:
            if namespace_map.lookup(namespace_char) is None:
                raise NamespaceLookupError(
                    f"Unknown source namespace \"{namespace_char}\" in transform: \"{definition}\"",
                    namespace_char=namespace_char,
                    option="transform_namespace",
                )

        parameters: Tuple[float, ...] = ()
        raw_parameters = match.group("parameters")
        if raw_parameters is not None and raw_parameters.strip():
            parameters = tuple(parse_float(p.strip(), "transform_namespace") for p in raw_parameters.split(","))

        transform = NamespaceTransform(
            to_namespace=to_namespace,
            function=match.group("function"),
            from_namespaces=from_namespaces,
            parameters=parameters,
            namespace_index=namespace_map.num_namespaces + len(self.transforms),
        )
        self.transforms.append(transform)
        logger.debug(f"Registered namespace transform {transform}")
        return transform

    def to_list(self) -> List[Dict[str, Any]]:
        return [t.to_dict() for t in self.transforms]

    @classmethod
    def from_list(cls, records: List[Dict[str, Any]]) -> "NamespaceTransforms":
        transforms = []
        for record in records or []:
            try:
                transforms.append(NamespaceTransform(
                    to_namespace=str(record["to_namespace"]),
                    function=str(record["function"]),
                    from_namespaces=tuple(record["from_namespaces"]),
                    parameters=tuple(float(p) for p in record.get("parameters", [])),
                    namespace_index=int(record["namespace_index"]),
                ))
            except (KeyError, TypeError, ValueError) as e:
                raise RecordError(f"Invalid namespace transform record {record!r}: {e}",
                                  option="transform_namespaces", value=record) from e
        return cls(transforms)


class NamespaceResolver:
    """Resolves namespace letters against a namespace map and its transforms."""

    def __init__(self, namespace_map: NamespaceMap, transforms: Optional[NamespaceTransforms] = None):
        self.namespace_map = namespace_map
        self.transforms = transforms if transforms is not None else NamespaceTransforms()

    def resolve(self, namespace_char: str) -> int:
        index = self.namespace_map.lookup(namespace_char)
        if index is not None:
            return index
        index = self.transforms.lookup(namespace_char)
        if index is not None:
            return index
        raise NamespaceLookupError(
            f"Unknown namespace char in command line: {namespace_char}",
            namespace_char=namespace_char,
        )
