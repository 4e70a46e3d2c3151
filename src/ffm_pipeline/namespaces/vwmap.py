# filename: src/ffm_pipeline/namespaces/vwmap.py
"""
Namespace letter registry.

Input rows are grouped into namespaces, each identified by a single letter.
The map below is read from the `vw_namespace_map.csv` file that sits next to
the training data; every line declares one namespace as
`<letter>,<verbose name>[:<weight>]`. Letters get consecutive indices in
declaration order. The optional `:<weight>` on the verbose name belongs to the
input format and is ignored here; combo weights are only ever taken from the
`--keep` / `--interactions` strings.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from ffm_pipeline.config.errors import NamespaceMapError


logger = logging.getLogger(__name__)

NAMESPACE_MAP_FILENAME = "vw_namespace_map.csv"


@dataclass(frozen=True)
class NamespaceDescriptor:
    namespace_char: str
    namespace_index: int
    namespace_name: str
    is_float: bool = False # Raw numeric (non-hashed) namespace.


class NamespaceMap:
    """Maps namespace letters to feature indices."""

    def __init__(self, descriptors: List[NamespaceDescriptor], float_namespaces_skip_prefix: int = 0):
        self._descriptors = list(descriptors)
        self._by_char: Dict[str, NamespaceDescriptor] = {d.namespace_char: d for d in self._descriptors}
        self.float_namespaces_skip_prefix = float_namespaces_skip_prefix

    @classmethod
    def from_string(
        cls,
        text: str,
        float_namespaces: Tuple[str, int] = ("", 0),
    ) -> "NamespaceMap":
        """
        Parse the namespace map from its text form.

        Args:
            text: Content of a `vw_namespace_map.csv` file.
            float_namespaces: `(letters, skip_prefix)` as returned by
                `get_float_namespaces`; every letter must be declared in `text`.

        Raises:
            NamespaceMapError: On malformed lines, duplicate letters or unknown
                float namespace letters.
        """
        float_chars, skip_prefix = float_namespaces
        descriptors: List[NamespaceDescriptor] = []
        seen = set()

        for lineno, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue
            parts = line.split(",", 1)
            if len(parts) != 2:
                raise NamespaceMapError(
                    f"Namespace map line {lineno} must be \"<letter>,<name>\", got: \"{line}\"", value=line
                )
            namespace_char, namespace_name = parts[0].strip(), parts[1].strip()
            if len(namespace_char) != 1:
                raise NamespaceMapError(
                    f"Namespace map line {lineno}: namespace must be a single character, got: \"{namespace_char}\"",
                    value=line,
                )
            if namespace_char in seen:
                raise NamespaceMapError(
                    f"Namespace map line {lineno}: duplicate namespace \"{namespace_char}\"", value=line
                )
            seen.add(namespace_char)
            descriptors.append(NamespaceDescriptor(
                namespace_char=namespace_char,
                namespace_index=len(descriptors),
                namespace_name=namespace_name.split(":", 1)[0],
                is_float=namespace_char in float_chars,
            ))

        unknown = [c for c in float_chars if c not in seen]
        if unknown:
            raise NamespaceMapError(
                f"Float namespaces not declared in namespace map: {''.join(unknown)}",
                option="float_namespaces",
                value=float_chars,
            )

        logger.debug(f"Loaded {len(descriptors)} namespaces ({len(float_chars)} float)")
        return cls(descriptors, float_namespaces_skip_prefix=skip_prefix)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        float_namespaces: Tuple[str, int] = ("", 0),
    ) -> "NamespaceMap":
        """Load the map from a file, or from `vw_namespace_map.csv` when given a directory."""
        path = Path(path)
        if path.is_dir():
            path = path / NAMESPACE_MAP_FILENAME
        if not path.exists():
            raise FileNotFoundError(f"Namespace map not found: {path}")
        return cls.from_string(path.read_text(), float_namespaces)

    @property
    def num_namespaces(self) -> int:
        return len(self._descriptors)

    @property
    def descriptors(self) -> List[NamespaceDescriptor]:
        return list(self._descriptors)

    def __contains__(self, namespace_char: str) -> bool:
        return namespace_char in self._by_char

    def __iter__(self) -> Iterator[NamespaceDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def lookup(self, namespace_char: str) -> Optional[int]:
        """Index of a namespace letter, or None when it is not declared."""
        descriptor = self._by_char.get(namespace_char)
        return None if descriptor is None else descriptor.namespace_index

    def is_float(self, namespace_char: str) -> bool:
        descriptor = self._by_char.get(namespace_char)
        return descriptor is not None and descriptor.is_float
