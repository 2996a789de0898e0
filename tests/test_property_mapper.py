"""Tests for metadata normalization, id resolution and label extraction."""

import pytest

from graphcommitter.config import CommitterSettings
from graphcommitter.documents.mapper import PropertyMapper
from graphcommitter.documents.models import AddOperation
from graphcommitter.exceptions import ContentReadError, InvalidOperationError
from graphcommitter.graph.schema import AdditionalLabel, format_node_properties
from tests.helpers import add_operation


class BrokenStream:
    def read(self):
        raise OSError("disk went away")


def test_multi_values_are_joined_with_the_joiner():
    mapper = PropertyMapper(CommitterSettings())
    entry = mapper.build_entry(add_operation("doc-1", {"color": ["red", "blue"]}))

    assert mapper.node_properties(entry)["color"] == "red|blue"


def test_custom_joiner_is_used():
    mapper = PropertyMapper(CommitterSettings(multi_values_joiner=" ; "))
    entry = mapper.build_entry(add_operation("doc-1", {"color": ["red", "blue"]}))

    assert mapper.node_properties(entry)["color"] == "red ; blue"


def test_blank_values_never_become_properties():
    properties = format_node_properties(
        {"empty": "", "spaces": "   ", "none": None, "list": ["", None], "mixed": ["", "a"]},
        "|",
    )

    assert properties == {"mixed": "a"}


def test_id_comes_from_reference_field_when_present():
    mapper = PropertyMapper(CommitterSettings())
    entry = mapper.build_entry(add_operation("ignored", {"document.reference": "http://a"}))

    assert entry.id == "http://a"
    assert entry.properties["document.reference"] == "http://a"


def test_id_falls_back_to_operation_reference():
    mapper = PropertyMapper(CommitterSettings())
    entry = mapper.build_entry(add_operation("http://b", {"document.reference": "  "}))

    assert entry.id == "http://b"


def test_reference_field_removed_unless_kept():
    mapper = PropertyMapper(
        CommitterSettings(source_reference_field="myid", keep_source_reference_field=False)
    )
    entry = mapper.build_entry(add_operation("ref", {"myid": "42", "title": "t"}))

    assert entry.id == "42"
    assert "myid" not in entry.properties


def test_blank_id_is_rejected():
    mapper = PropertyMapper(CommitterSettings())

    with pytest.raises(InvalidOperationError):
        mapper.build_entry(add_operation("  ", {}))


def test_label_field_moved_out_of_properties_when_not_kept():
    mapper = PropertyMapper(
        CommitterSettings(additional_labels=(AdditionalLabel("TYPE", keep=False),))
    )
    entry = mapper.build_entry(add_operation("doc", {"TYPE": "Wine", "title": "Merlot"}))

    assert entry.labels == ("Wine",)
    assert "TYPE" not in entry.properties
    assert entry.properties["title"] == "Merlot"


def test_label_field_kept_alongside_label():
    mapper = PropertyMapper(
        CommitterSettings(additional_labels=(AdditionalLabel("TYPE", keep=True),))
    )
    entry = mapper.build_entry(add_operation("doc", {"TYPE": "Wine"}))

    assert entry.labels == ("Wine",)
    assert entry.properties["TYPE"] == "Wine"


def test_multi_valued_label_field_gives_several_labels():
    mapper = PropertyMapper(
        CommitterSettings(additional_labels=(AdditionalLabel("TYPE"), AdditionalLabel("KIND")))
    )
    entry = mapper.build_entry(add_operation("doc", {"TYPE": ["Wine", "Red"], "KIND": "Wine"}))

    assert entry.labels == ("Wine", "Red")


def test_content_stream_is_read_and_decoded():
    mapper = PropertyMapper(CommitterSettings())
    entry = mapper.build_entry(add_operation("doc", {}, content="héllo"))

    assert entry.content == "héllo"
    assert entry.content_field == "content"


def test_unreadable_content_is_fatal():
    mapper = PropertyMapper(CommitterSettings())
    operation = AddOperation(reference="doc", metadata={}, content=BrokenStream())

    with pytest.raises(ContentReadError):
        mapper.build_entry(operation)


def test_content_can_come_from_a_metadata_field():
    mapper = PropertyMapper(CommitterSettings(source_content_field="body"))
    entry = mapper.build_entry(add_operation("doc", {"body": ["part one", "part two"]}, content="stream"))

    assert entry.content == "part one|part two"
    assert "body" not in entry.properties
