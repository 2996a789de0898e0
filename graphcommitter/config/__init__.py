"""
Configuration utilities for graph-committer.
"""

from .settings import (
    CommitterSettings,
    Neo4jSettings,
    load_committer_settings,
    load_settings,
    parse_enum,
)

__all__ = [
    "CommitterSettings",
    "Neo4jSettings",
    "load_committer_settings",
    "load_settings",
    "parse_enum",
]
