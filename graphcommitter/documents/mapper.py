"""
Property mapper: turns an add operation into a GraphEntry.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from graphcommitter.config import CommitterSettings
from graphcommitter.documents.models import AddOperation, GraphEntry
from graphcommitter.exceptions import ContentReadError, InvalidOperationError
from graphcommitter.graph.schema import PropertyValue, field_values, format_node_properties

logger = logging.getLogger(__name__)


class PropertyMapper:
    """
    Normalizes document metadata according to the committer settings.

    The mapper resolves the document id, pulls the content (from the content
    stream or a metadata field) and moves additional-label fields out of the
    stored properties unless they are flagged `keep`.
    """

    def __init__(self, settings: CommitterSettings) -> None:
        self._settings = settings

    def build_entry(self, operation: AddOperation) -> GraphEntry:
        properties: Dict[str, PropertyValue] = dict(operation.metadata)

        doc_id = self._resolve_id(operation, properties)
        content = self._resolve_content(operation, properties)
        labels = self._extract_labels(properties)

        return GraphEntry(
            id=doc_id,
            properties=properties,
            labels=tuple(labels),
            content_field=self._settings.target_content_field,
            content=content,
        )

    def node_properties(self, entry: GraphEntry) -> Dict[str, str]:
        """Properties of the node holding the document metadata, multi-values joined."""

        return format_node_properties(entry.properties, self._settings.multi_values_joiner)

    # Internal helpers -------------------------------------------------------------
    def _resolve_id(self, operation: AddOperation, properties: Dict[str, PropertyValue]) -> str:
        field_name = self._settings.source_reference_field
        doc_id = operation.reference
        if field_name:
            values = field_values(properties.get(field_name))
            if values:
                doc_id = values[0]
            if not self._settings.keep_source_reference_field:
                properties.pop(field_name, None)

        if not doc_id or not doc_id.strip():
            raise InvalidOperationError("Add operation has neither a reference nor a reference field value")
        return doc_id.strip()

    def _resolve_content(
        self,
        operation: AddOperation,
        properties: Dict[str, PropertyValue],
    ) -> Optional[str]:
        field_name = self._settings.source_content_field
        if field_name:
            values = field_values(properties.get(field_name))
            if not self._settings.keep_source_content_field:
                properties.pop(field_name, None)
            return self._settings.multi_values_joiner.join(values) or None

        if operation.content is None:
            return None
        try:
            data = operation.content.read()
        except OSError as exc:
            raise ContentReadError(operation.reference, exc) from exc
        if isinstance(data, str):
            return data or None
        return data.decode("utf-8", errors="replace") or None

    def _extract_labels(self, properties: Dict[str, PropertyValue]) -> List[str]:
        labels: List[str] = []
        for additional_label in self._settings.additional_labels:
            for value in field_values(properties.get(additional_label.source_field)):
                label = value.strip()
                if label not in labels:
                    labels.append(label)
            if not additional_label.keep:
                properties.pop(additional_label.source_field, None)
        if labels:
            logger.debug("Extracted labels %s", labels)
        return labels
