"""
Render declarative mutations into parameterised Cypher.

Values always travel as parameters. Labels, property keys and relationship
types cannot be parameterised in Cypher, so they are backtick-quoted here;
they come from configuration and document metadata and may contain dots,
spaces or backticks.

Every statement returns a single `affected` column so the store can report
how many nodes each mutation touched (zero for a MATCH that found nothing).
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Tuple

from .mutations import (
    ClaimPlaceholder,
    ConnectNodes,
    DeleteNode,
    Mutation,
    NodeKey,
    UpsertLinkedNode,
    UpsertNode,
)
from .schema import Direction

Statement = Tuple[str, Dict[str, Any]]


def quote(name: str) -> str:
    """Quote a label, property key or relationship type for use in Cypher."""

    if not name or not name.strip():
        raise ValueError("Cypher identifiers must not be blank")
    return "`" + name.replace("`", "``") + "`"


def render(mutation: Mutation) -> Statement:
    if isinstance(mutation, UpsertNode):
        return _render_upsert_node(mutation)
    if isinstance(mutation, UpsertLinkedNode):
        return _render_upsert_linked_node(mutation)
    if isinstance(mutation, ClaimPlaceholder):
        return _render_claim_placeholder(mutation)
    if isinstance(mutation, DeleteNode):
        return _render_delete_node(mutation)
    if isinstance(mutation, ConnectNodes):
        return _render_connect_nodes(mutation)
    raise TypeError(f"Unsupported mutation: {mutation!r}")


# Renderers --------------------------------------------------------------------
def _render_upsert_node(mutation: UpsertNode) -> Statement:
    properties = dict(mutation.properties)
    properties[mutation.key] = mutation.value
    query = "\n".join(
        line
        for line in (
            f"MERGE (n:{quote(mutation.label)} {{{quote(mutation.key)}: $value}})",
            "SET n = $props",
            _set_labels("n", mutation.labels),
            "RETURN count(n) AS affected",
        )
        if line
    )
    return query, {"value": mutation.value, "props": properties}


def _render_upsert_linked_node(mutation: UpsertLinkedNode) -> Statement:
    owner = _require_direct(mutation.owner)
    query = "\n".join(
        line
        for line in (
            f"MATCH {_pattern('owner', owner, 'owner')}",
            f"MERGE (owner)-[:{quote(mutation.rel_type)}]->(n:{quote(mutation.label)})",
            "SET n = $props",
            _set_labels("n", mutation.labels),
            "RETURN count(n) AS affected",
        )
        if line
    )
    return query, {"owner": owner.value, "props": dict(mutation.properties)}


def _render_claim_placeholder(mutation: ClaimPlaceholder) -> Statement:
    if mutation.rel_type is None:
        unowned = f"p.{quote(mutation.owner.key)} IS NULL"
    else:
        unowned = f"NOT ()-[:{quote(mutation.rel_type)}]->(p)"

    lines = [
        f"MATCH {_pattern('owner', mutation.owner, 'owner')}",
        f"MATCH (p:{quote(mutation.label)} {{{quote(mutation.key)}: $value}})",
        f"WHERE p <> owner AND {unowned}",
    ]
    for rel_type in mutation.rel_types:
        rel = quote(rel_type)
        lines.extend(
            (
                f"FOREACH (x IN [(p)-[:{rel}]->(target) WHERE target <> owner | target] |",
                f"  MERGE (owner)-[:{rel}]->(x))",
                f"FOREACH (x IN [(source)-[:{rel}]->(p) WHERE source <> owner | source] |",
                f"  MERGE (x)-[:{rel}]->(owner))",
            )
        )
    lines.extend(
        (
            "WITH collect(p) AS claimed",
            "FOREACH (node IN claimed | DETACH DELETE node)",
            "RETURN size(claimed) AS affected",
        )
    )
    return "\n".join(lines), {"owner": mutation.owner.value, "value": mutation.value}


def _render_delete_node(mutation: DeleteNode) -> Statement:
    node = _require_direct(mutation.node)
    lines = [f"MATCH {_pattern('n', node, 'value')}"]
    if mutation.cascade:
        rel_types = "|".join(quote(rel_type) for rel_type in mutation.cascade)
        lines.extend(
            (
                f"OPTIONAL MATCH (n)-[:{rel_types}]->(child)",
                "WITH n, collect(child) AS children",
                "FOREACH (child IN children | DETACH DELETE child)",
            )
        )
    lines.extend(("DETACH DELETE n", "RETURN count(*) AS affected"))
    return "\n".join(lines), {"value": node.value}


def _render_connect_nodes(mutation: ConnectNodes) -> Statement:
    if mutation.direction is Direction.NONE:
        raise ValueError("Relationships with direction NONE are disabled and cannot be rendered")

    rel = quote(mutation.rel_type)
    find = "MERGE" if mutation.create_missing else "MATCH"
    lines = [
        f"MATCH {_pattern('a', mutation.anchor, 'anchor')}",
        f"{find} (b:{quote(mutation.label)} {{{quote(mutation.key)}: $value}})",
    ]
    if mutation.direction in (Direction.OUTGOING, Direction.BOTH):
        lines.append(f"MERGE (a)-[:{rel}]->(b)")
    if mutation.direction in (Direction.INCOMING, Direction.BOTH):
        lines.append(f"MERGE (a)<-[:{rel}]-(b)")
    lines.append("RETURN count(b) AS affected")
    return "\n".join(lines), {"anchor": mutation.anchor.value, "value": mutation.value}


# Helpers ----------------------------------------------------------------------
def _pattern(variable: str, node: NodeKey, parameter: str) -> str:
    keyed = f"{quote(node.label)} {{{quote(node.key)}: ${parameter}}}"
    if node.hop is None:
        return f"({variable}:{keyed})"
    rel_type, label = node.hop
    return f"(:{keyed})-[:{quote(rel_type)}]->({variable}:{quote(label)})"


def _set_labels(variable: str, labels: Iterable[str]) -> str:
    quoted = "".join(f":{quote(label)}" for label in labels)
    return f"SET {variable}{quoted}" if quoted else ""


def _require_direct(node: NodeKey) -> NodeKey:
    if node.hop is not None:
        raise ValueError(f"{node.label} key must address the keyed node directly")
    return node
