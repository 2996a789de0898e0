"""
Centralized committer settings.

Environment variables drive configuration so that deployments can override
defaults without code changes. Label and relationship rules are structured
and come from the XML configuration file (see `xml_config`).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Type, TypeVar

from graphcommitter.exceptions import ConfigurationError
from graphcommitter.graph.schema import (
    DEFAULT_CONTENT_FIELD,
    DEFAULT_ID_FIELD,
    DEFAULT_MULTI_VALUES_JOINER,
    DEFAULT_PRIMARY_LABEL,
    DEFAULT_SOURCE_REFERENCE_FIELD,
    AdditionalLabel,
    RelationshipRule,
    TopologyType,
)

E = TypeVar("E", bound=Enum)

ENV_PREFIX = "GRAPHCOMMITTER_"


@dataclass(frozen=True)
class Neo4jSettings:
    """Connection parameters for Neo4j."""

    uri: str
    username: str
    password: str
    database: str = "neo4j"
    transaction_timeout: Optional[float] = 30.0


@dataclass(frozen=True)
class CommitterSettings:
    """
    Mapping configuration shared by every mutation of one committer instance.

    `max_retries` counts attempts after the first one; `max_retry_wait` caps
    the backoff delay between attempts, in seconds.
    """

    topology_type: TopologyType = TopologyType.ONE_NODE
    primary_label: str = DEFAULT_PRIMARY_LABEL
    multi_values_joiner: str = DEFAULT_MULTI_VALUES_JOINER
    additional_labels: Tuple[AdditionalLabel, ...] = ()
    relationships: Tuple[RelationshipRule, ...] = ()
    source_reference_field: Optional[str] = DEFAULT_SOURCE_REFERENCE_FIELD
    keep_source_reference_field: bool = True
    target_reference_field: str = DEFAULT_ID_FIELD
    source_content_field: Optional[str] = None
    keep_source_content_field: bool = False
    target_content_field: str = DEFAULT_CONTENT_FIELD
    commit_batch_size: int = 100
    max_retries: int = 3
    max_retry_wait: float = 5.0

    def __post_init__(self) -> None:
        if not self.primary_label.strip():
            raise ConfigurationError("primary_label must not be blank")
        if not self.target_reference_field.strip():
            raise ConfigurationError("target_reference_field must not be blank")
        if not self.target_content_field.strip():
            raise ConfigurationError("target_content_field must not be blank")
        if not self.multi_values_joiner:
            raise ConfigurationError("multi_values_joiner must not be empty")
        if self.commit_batch_size < 1:
            raise ConfigurationError("commit_batch_size must be at least 1")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must not be negative")
        if self.max_retry_wait < 0:
            raise ConfigurationError("max_retry_wait must not be negative")


def parse_enum(enum_type: Type[E], value: str, setting: str) -> E:
    """Parse an enum member by name, case-insensitively."""

    try:
        return enum_type[value.strip().upper()]
    except KeyError:
        allowed = ", ".join(member.name for member in enum_type)
        raise ConfigurationError(f"Invalid {setting} {value!r}; expected one of {allowed}") from None


def load_settings() -> Neo4jSettings:
    """
    Load Neo4j configuration from environment variables.

    Required vars:
        GRAPHCOMMITTER_NEO4J_URI
        GRAPHCOMMITTER_NEO4J_USER
        GRAPHCOMMITTER_NEO4J_PASSWORD

    Optional:
        GRAPHCOMMITTER_NEO4J_DATABASE (defaults to \"neo4j\")
        GRAPHCOMMITTER_NEO4J_TX_TIMEOUT (seconds, defaults to 30)
    """

    uri = os.environ.get(f"{ENV_PREFIX}NEO4J_URI")
    username = os.environ.get(f"{ENV_PREFIX}NEO4J_USER")
    password = os.environ.get(f"{ENV_PREFIX}NEO4J_PASSWORD")
    database = os.environ.get(f"{ENV_PREFIX}NEO4J_DATABASE", "neo4j")
    timeout = _float_env(f"{ENV_PREFIX}NEO4J_TX_TIMEOUT", 30.0)

    if not uri or not username or not password:
        raise ConfigurationError("Neo4j configuration missing required environment variables")

    return Neo4jSettings(
        uri=uri,
        username=username,
        password=password,
        database=database,
        transaction_timeout=timeout,
    )


def load_committer_settings() -> CommitterSettings:
    """Load the scalar committer settings from environment variables."""

    defaults = CommitterSettings()
    topology = os.environ.get(f"{ENV_PREFIX}TOPOLOGY")
    return CommitterSettings(
        topology_type=(
            parse_enum(TopologyType, topology, "node topology") if topology else defaults.topology_type
        ),
        primary_label=os.environ.get(f"{ENV_PREFIX}PRIMARY_LABEL", defaults.primary_label),
        multi_values_joiner=os.environ.get(
            f"{ENV_PREFIX}MULTI_VALUES_JOINER", defaults.multi_values_joiner
        ),
        commit_batch_size=int(_float_env(f"{ENV_PREFIX}BATCH_SIZE", defaults.commit_batch_size)),
        max_retries=int(_float_env(f"{ENV_PREFIX}MAX_RETRIES", defaults.max_retries)),
        max_retry_wait=_float_env(f"{ENV_PREFIX}MAX_RETRY_WAIT", defaults.max_retry_wait),
    )


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be numeric, got {raw!r}") from None
