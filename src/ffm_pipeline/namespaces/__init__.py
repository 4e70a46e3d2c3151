# filename: src/ffm_pipeline/namespaces/__init__.py
"""
Namespace registries used while building a model configuration.

`NamespaceMap` maps namespace letters declared in `vw_namespace_map.csv` to
indices, `NamespaceTransforms` records derived namespaces, and
`NamespaceResolver` combines both into the single letter -> index lookup the
configuration parsers depend on.
"""

from ffm_pipeline.namespaces.vwmap import (
    NAMESPACE_MAP_FILENAME,
    NamespaceDescriptor,
    NamespaceMap,
)
from ffm_pipeline.namespaces.transforms import (
    NamespaceResolver,
    NamespaceTransform,
    NamespaceTransforms,
)

__all__ = [
    "NAMESPACE_MAP_FILENAME",
    "NamespaceDescriptor",
    "NamespaceMap",
    "NamespaceResolver",
    "NamespaceTransform",
    "NamespaceTransforms",
]
