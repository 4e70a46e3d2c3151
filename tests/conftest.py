"""
Shared fixtures for the ffm_pipeline test suite.
"""

import logging

import pytest

from ffm_pipeline.config.errors import NamespaceLookupError
from ffm_pipeline.namespaces import NamespaceMap


NAMESPACE_MAP_TEXT = """
A,featureA
B,featureB
C,featureC
"""


class StubResolver:
    """Dictionary-backed stand-in for NamespaceResolver."""

    def __init__(self, mapping):
        self.mapping = dict(mapping)

    def resolve(self, namespace_char):
        try:
            return self.mapping[namespace_char]
        except KeyError:
            raise NamespaceLookupError(f"Unknown namespace char in command line: {namespace_char}",
                                       namespace_char=namespace_char) from None


@pytest.fixture
def resolver():
    return StubResolver({"A": 0, "B": 1, "C": 2})


@pytest.fixture
def vw_map():
    return NamespaceMap.from_string(NAMESPACE_MAP_TEXT)


@pytest.fixture
def namespace_map_file(tmp_path):
    path = tmp_path / "vw_namespace_map.csv"
    path.write_text(NAMESPACE_MAP_TEXT)
    return path


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The CLI entry points reconfigure the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
