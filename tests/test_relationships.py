"""Tests for declared relationships between committed documents."""

from graphcommitter.graph.relationships import MissingEndpoint, RelationshipResolver
from graphcommitter.graph.schema import (
    NODE_METADATA,
    REL_HAS_METADATA,
    Direction,
    FindSyntax,
    RelationshipRule,
    TopologyType,
)
from tests.helpers import entry_for, store_document

LABEL = "CommittedDocument"
REFERRER = "collector.referrer-reference"
REFERENCE = "document.reference"


def child_of(direction=Direction.OUTGOING, find_syntax=FindSyntax.MERGE) -> RelationshipRule:
    return RelationshipRule(
        type="CHILD_OF",
        direction=direction,
        source_property_key=REFERRER,
        target_property_key=REFERENCE,
        find_syntax=find_syntax,
    )


def parent(reference):
    return {REFERENCE: reference}


def child(reference, referrer):
    return {REFERENCE: reference, REFERRER: referrer}


def test_merge_creates_a_minimal_endpoint(store, make_topology):
    topology = make_topology(relationships=(child_of(),))

    report = store_document(topology, "c", child("c", "p"))

    [(source, target)] = store.edges_of_type("CHILD_OF")
    assert source.props["identity"] == "c"
    assert target.props == {REFERENCE: "p"}
    assert report.relationships == 1
    assert report.missing_endpoints == ()


def test_match_miss_is_recorded_not_raised(store, make_topology):
    topology = make_topology(relationships=(child_of(find_syntax=FindSyntax.MATCH),))

    report = store_document(topology, "c", child("c", "p"))

    assert store.edges == set()
    assert len(store.nodes) == 1
    assert report.missing_endpoints == (
        MissingEndpoint(document_id="c", relationship_type="CHILD_OF", key=REFERENCE, value="p"),
    )


def test_match_hit_connects_existing_node(store, make_topology):
    topology = make_topology(relationships=(child_of(find_syntax=FindSyntax.MATCH),))
    store_document(topology, "p", parent("p"))

    report = store_document(topology, "c", child("c", "p"))

    [(source, target)] = store.edges_of_type("CHILD_OF")
    assert (source.props["identity"], target.props["identity"]) == ("c", "p")
    assert report.missing_endpoints == ()


def test_parent_first_or_child_first_gives_the_same_graph(store, make_topology):
    topology = make_topology(relationships=(child_of(),))

    store_document(topology, "c", child("c", "p"))
    store_document(topology, "p", parent("p"))

    assert len(store.nodes) == 2
    [node] = store.find(LABEL, identity="p")
    assert node.props == {"identity": "p", REFERENCE: "p"}
    [(source, target)] = store.edges_of_type("CHILD_OF")
    assert (source.props["identity"], target.props["identity"]) == ("c", "p")


def test_parent_first_does_not_duplicate(store, make_topology):
    topology = make_topology(relationships=(child_of(),))

    store_document(topology, "p", parent("p"))
    store_document(topology, "c", child("c", "p"))

    assert len(store.nodes) == 2
    assert len(store.edges_of_type("CHILD_OF")) == 1


def test_splitted_relationships_connect_metadata_nodes(store, make_topology):
    topology = make_topology(topology_type=TopologyType.SPLITTED, relationships=(child_of(),))

    store_document(topology, "c", child("c", "p"), content="child body")
    store_document(topology, "p", parent("p"), content="parent body")

    assert len(store.nodes) == 6
    [(source, target)] = store.edges_of_type("CHILD_OF")
    assert source.labels == {NODE_METADATA}
    assert target.labels == {NODE_METADATA}
    [identity] = store.find(LABEL, identity="p")
    assert store.linked(identity, REL_HAS_METADATA) == [target]
    assert target.props == {REFERENCE: "p"}


def test_incoming_direction_points_at_the_document(store, make_topology):
    topology = make_topology(relationships=(child_of(direction=Direction.INCOMING),))

    store_document(topology, "c", child("c", "p"))

    [(source, target)] = store.edges_of_type("CHILD_OF")
    assert source.props == {REFERENCE: "p"}
    assert target.props["identity"] == "c"


def test_both_direction_creates_two_edges(store, make_topology):
    topology = make_topology(relationships=(child_of(direction=Direction.BOTH),))

    store_document(topology, "c", child("c", "p"))

    assert len(store.edges_of_type("CHILD_OF")) == 2


def test_each_source_value_gets_its_own_edge(store, make_topology):
    topology = make_topology(relationships=(child_of(),))

    report = store_document(topology, "c", child("c", ["p1", "p2", "p1"]))

    targets = sorted(target.props[REFERENCE] for _, target in store.edges_of_type("CHILD_OF"))
    assert targets == ["p1", "p2"]
    assert report.relationships == 2


def test_blank_source_value_is_skipped(store, make_topology):
    topology = make_topology(relationships=(child_of(),))

    report = store_document(topology, "c", child("c", "   "))

    assert report.relationships == 0
    assert store.edges == set()


def test_disabled_rules_are_ignored(make_topology):
    rules = (child_of(direction=Direction.NONE), RelationshipRule(type=" ", direction=Direction.OUTGOING))
    resolver = RelationshipResolver(rules)
    topology = make_topology()
    entry = entry_for(topology, "c", child("c", "p"))

    assert resolver.rules == ()
    assert resolver.plan(entry, topology.anchor("c"), LABEL) == []


def test_claims_only_come_from_merge_rules(make_topology):
    topology = make_topology()
    owner = topology.identity_key("p")
    properties = {REFERENCE: "p"}

    assert RelationshipResolver((child_of(find_syntax=FindSyntax.MATCH),)).claims(owner, properties, LABEL) == []
    [claim] = RelationshipResolver((child_of(), child_of())).claims(owner, properties, LABEL)
    assert (claim.key, claim.value, claim.rel_type) == (REFERENCE, "p", None)
    assert claim.rel_types == ("CHILD_OF",)


def canonical_rules():
    return (
        RelationshipRule(
            type="LINKS",
            direction=Direction.OUTGOING,
            source_property_key="links",
            target_property_key=REFERENCE,
        ),
        RelationshipRule(
            type="CANONICAL",
            direction=Direction.OUTGOING,
            source_property_key="canon",
            target_property_key="url",
        ),
    )


def test_endpoints_of_different_rules_fold_into_one_document(store, make_topology):
    topology = make_topology(relationships=canonical_rules())

    store_document(topology, "a", {"links": "x", "canon": "http://x"})
    store_document(topology, "x", {REFERENCE: "x", "url": "http://x"})
    store_document(topology, "b", {"canon": "http://x"})

    assert len(store.nodes) == 3
    [x] = store.find(LABEL, identity="x")
    assert x.props == {"identity": "x", REFERENCE: "x", "url": "http://x"}
    canonical = sorted(
        (source.props["identity"], target.props["identity"]) for source, target in store.edges_of_type("CANONICAL")
    )
    assert canonical == [("a", "x"), ("b", "x")]
    [(source, target)] = store.edges_of_type("LINKS")
    assert (source.props["identity"], target.props["identity"]) == ("a", "x")


def test_splitted_endpoints_of_different_rules_fold_into_one_metadata_node(store, make_topology):
    topology = make_topology(topology_type=TopologyType.SPLITTED, relationships=canonical_rules())

    store_document(topology, "a", {"links": "x", "canon": "http://x"}, content="a")
    store_document(topology, "x", {REFERENCE: "x", "url": "http://x"}, content="x")
    store_document(topology, "b", {"canon": "http://x"}, content="b")

    assert len(store.nodes) == 9
    [x] = store.find(LABEL, identity="x")
    [metadata] = store.linked(x, REL_HAS_METADATA)
    assert {target.id for _, target in store.edges_of_type("CANONICAL")} == {metadata.id}
    assert [target.id for _, target in store.edges_of_type("LINKS")] == [metadata.id]
    assert len(store.edges_of_type("CANONICAL")) == 2


def test_incoming_edges_of_an_endpoint_follow_it_into_the_document(store, make_topology):
    topology = make_topology(relationships=(child_of(direction=Direction.INCOMING),))

    store_document(topology, "c", child("c", "p"))
    store_document(topology, "p", parent("p"))

    assert len(store.nodes) == 2
    [(source, target)] = store.edges_of_type("CHILD_OF")
    assert (source.props["identity"], target.props["identity"]) == ("p", "c")
