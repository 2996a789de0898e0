"""
Reader and writer for committer XML configuration files.

The accepted layout is the `<committer>` element used by crawler
configurations, e.g.:

    <committer>
      <uri>bolt://localhost:7687</uri>
      <user>neo4j</user>
      <password>secret</password>
      <nodeTopology>NO_CONTENT</nodeTopology>
      <primaryLabel>WINEDB</primaryLabel>
      <multiValuesJoiner>|</multiValuesJoiner>
      <relationships>
        <relationship type="LINKED_TO" direction="OUTGOING" targetFindSyntax="MERGE">
          <sourcePropertyKey>collector.referenced-urls</sourcePropertyKey>
          <targetPropertyKey>document.reference</targetPropertyKey>
        </relationship>
      </relationships>
      <additionalLabels>
        <sourceField keep="false">TYPE</sourceField>
      </additionalLabels>
    </committer>

Unknown elements are ignored; missing ones keep their defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
from xml.etree import ElementTree as ET

from graphcommitter.config.settings import CommitterSettings, Neo4jSettings, parse_enum
from graphcommitter.exceptions import ConfigurationError
from graphcommitter.graph.schema import (
    DEFAULT_RELATIONSHIP_TYPE,
    DEFAULT_SOURCE_PROPERTY_KEY,
    DEFAULT_TARGET_PROPERTY_KEY,
    AdditionalLabel,
    Direction,
    FindSyntax,
    RelationshipRule,
    TopologyType,
)


def _strip_namespace(tag: str) -> str:
    return tag.split("}", 1)[1] if "}" in tag else tag


@dataclass(frozen=True)
class CommitterConfig:
    """Parsed XML configuration. `neo4j` is None when the file has no connection settings."""

    committer: CommitterSettings
    neo4j: Optional[Neo4jSettings] = None


class CommitterConfigParser:
    """Parses a `<committer>` XML document into settings objects."""

    def parse(self, path: Path) -> CommitterConfig:
        try:
            root = ET.parse(path).getroot()
        except ET.ParseError as exc:
            raise ConfigurationError(f"Malformed committer configuration {path}: {exc}") from exc
        return self.parse_element(root)

    def parse_string(self, xml: str) -> CommitterConfig:
        try:
            root = ET.fromstring(xml)
        except ET.ParseError as exc:
            raise ConfigurationError(f"Malformed committer configuration: {exc}") from exc
        return self.parse_element(root)

    def parse_element(self, root: ET.Element) -> CommitterConfig:
        defaults = CommitterSettings()

        topology = self._find_text(root, "nodeTopology")
        source_reference = self._find_child(root, "sourceReferenceField")
        source_content = self._find_child(root, "sourceContentField")
        batch_size = self._find_number(root, "commitBatchSize")
        max_retries = self._find_number(root, "maxRetries")
        max_retry_wait_ms = self._find_number(root, "maxRetryWait")

        committer = CommitterSettings(
            topology_type=(
                parse_enum(TopologyType, topology, "node topology") if topology else defaults.topology_type
            ),
            primary_label=self._find_text(root, "primaryLabel") or defaults.primary_label,
            # Whitespace is a legitimate joiner, so the raw text is kept.
            multi_values_joiner=self._find_raw_text(root, "multiValuesJoiner") or defaults.multi_values_joiner,
            additional_labels=tuple(self._parse_additional_labels(root)),
            relationships=tuple(self._parse_relationships(root)),
            source_reference_field=(
                _element_text(source_reference) or defaults.source_reference_field
            ),
            keep_source_reference_field=_parse_bool(
                source_reference.attrib.get("keep") if source_reference is not None else None,
                default=defaults.keep_source_reference_field,
            ),
            target_reference_field=(
                self._find_text(root, "targetReferenceField") or defaults.target_reference_field
            ),
            source_content_field=_element_text(source_content),
            keep_source_content_field=_parse_bool(
                source_content.attrib.get("keep") if source_content is not None else None,
                default=defaults.keep_source_content_field,
            ),
            target_content_field=(
                self._find_text(root, "targetContentField") or defaults.target_content_field
            ),
            commit_batch_size=int(batch_size) if batch_size is not None else defaults.commit_batch_size,
            max_retries=int(max_retries) if max_retries is not None else defaults.max_retries,
            max_retry_wait=(
                max_retry_wait_ms / 1000.0 if max_retry_wait_ms is not None else defaults.max_retry_wait
            ),
        )
        return CommitterConfig(committer=committer, neo4j=self._parse_neo4j(root))

    # Section parsers -------------------------------------------------------------
    def _parse_neo4j(self, root: ET.Element) -> Optional[Neo4jSettings]:
        uri = self._find_text(root, "uri")
        if not uri:
            return None
        username = self._find_text(root, "user")
        password = self._find_raw_text(root, "password")
        if not username or password is None:
            raise ConfigurationError("Committer configuration has a <uri> but no <user>/<password>")
        return Neo4jSettings(
            uri=uri,
            username=username,
            password=password,
            database=self._find_text(root, "database") or "neo4j",
        )

    def _parse_additional_labels(self, root: ET.Element) -> List[AdditionalLabel]:
        labels: List[AdditionalLabel] = []
        container = self._find_child(root, "additionalLabels")
        if container is None:
            return labels
        for child in container:
            if _strip_namespace(child.tag).lower() != "sourcefield":
                continue
            source_field = _element_text(child)
            if not source_field:
                continue
            labels.append(
                AdditionalLabel(
                    source_field=source_field,
                    keep=_parse_bool(child.attrib.get("keep"), default=True),
                )
            )
        return labels

    def _parse_relationships(self, root: ET.Element) -> List[RelationshipRule]:
        rules: List[RelationshipRule] = []
        container = self._find_child(root, "relationships")
        if container is None:
            return rules
        for child in container:
            if _strip_namespace(child.tag).lower() != "relationship":
                continue
            direction = child.attrib.get("direction")
            find_syntax = child.attrib.get("targetFindSyntax")
            rules.append(
                RelationshipRule(
                    type=child.attrib.get("type") or DEFAULT_RELATIONSHIP_TYPE,
                    direction=(
                        parse_enum(Direction, direction, "relationship direction")
                        if direction
                        else Direction.NONE
                    ),
                    source_property_key=(
                        self._find_text(child, "sourcePropertyKey") or DEFAULT_SOURCE_PROPERTY_KEY
                    ),
                    target_property_key=(
                        self._find_text(child, "targetPropertyKey") or DEFAULT_TARGET_PROPERTY_KEY
                    ),
                    find_syntax=(
                        parse_enum(FindSyntax, find_syntax, "target find syntax")
                        if find_syntax
                        else FindSyntax.MERGE
                    ),
                )
            )
        return rules

    # Utility helpers -------------------------------------------------------------
    def _find_text(self, element: ET.Element, tag_name: str) -> str | None:
        return _element_text(self._find_child(element, tag_name))

    def _find_raw_text(self, element: ET.Element, tag_name: str) -> str | None:
        child = self._find_child(element, tag_name)
        if child is not None and child.text:
            return child.text
        return None

    def _find_number(self, element: ET.Element, tag_name: str) -> float | None:
        text = self._find_text(element, tag_name)
        if text is None:
            return None
        try:
            return float(text)
        except ValueError:
            raise ConfigurationError(f"<{tag_name}> must be numeric, got {text!r}") from None

    def _find_child(self, element: ET.Element, tag_name: str) -> ET.Element | None:
        for child in element:
            if _strip_namespace(child.tag).lower() == tag_name.lower():
                return child
        return None


def load_committer_config(path: Path) -> CommitterConfig:
    return CommitterConfigParser().parse(path)


def dump_committer_config(config: CommitterConfig) -> str:
    """Serialize `config` back into a `<committer>` element that `CommitterConfigParser` accepts."""

    root = ET.Element("committer")
    settings = config.committer

    if config.neo4j is not None:
        _text_element(root, "user", config.neo4j.username)
        _text_element(root, "password", config.neo4j.password)
        _text_element(root, "uri", config.neo4j.uri)
        _text_element(root, "database", config.neo4j.database)

    _text_element(root, "nodeTopology", settings.topology_type.value)
    _text_element(root, "primaryLabel", settings.primary_label)
    _text_element(root, "multiValuesJoiner", settings.multi_values_joiner)

    labels = ET.SubElement(root, "additionalLabels")
    for additional_label in settings.additional_labels:
        _text_element(labels, "sourceField", additional_label.source_field, keep=additional_label.keep)

    if settings.relationships:
        relationships = ET.SubElement(root, "relationships")
        for rule in settings.relationships:
            relationship = ET.SubElement(
                relationships,
                "relationship",
                type=rule.type,
                direction=rule.direction.value,
                targetFindSyntax=rule.find_syntax.value,
            )
            _text_element(relationship, "sourcePropertyKey", rule.source_property_key)
            _text_element(relationship, "targetPropertyKey", rule.target_property_key)

    if settings.source_reference_field:
        _text_element(
            root,
            "sourceReferenceField",
            settings.source_reference_field,
            keep=settings.keep_source_reference_field,
        )
    _text_element(root, "targetReferenceField", settings.target_reference_field)
    if settings.source_content_field:
        _text_element(
            root,
            "sourceContentField",
            settings.source_content_field,
            keep=settings.keep_source_content_field,
        )
    _text_element(root, "targetContentField", settings.target_content_field)
    _text_element(root, "commitBatchSize", str(settings.commit_batch_size))
    _text_element(root, "maxRetries", str(settings.max_retries))
    _text_element(root, "maxRetryWait", str(round(settings.max_retry_wait * 1000)))

    ET.indent(root)
    return ET.tostring(root, encoding="unicode")


def _text_element(parent: ET.Element, tag: str, text: str, *, keep: bool | None = None) -> ET.Element:
    element = ET.SubElement(parent, tag)
    if keep is not None:
        element.set("keep", "true" if keep else "false")
    element.text = text
    return element


def _element_text(element: ET.Element | None) -> str | None:
    if element is not None and element.text and element.text.strip():
        return element.text.strip()
    return None


def _parse_bool(value: str | None, *, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"true", "yes", "1"}
