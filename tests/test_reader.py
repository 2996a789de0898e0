"""Tests for JSON Lines operation files and CLI input resolution."""

import json

import pytest
from neo4j.exceptions import ServiceUnavailable

from graphcommitter.documents.models import AddOperation, CommitOperation, DeleteOperation
from graphcommitter.exceptions import InvalidOperationError
from graphcommitter.graph.store import Neo4jGraphStore
from graphcommitter.pipeline.__main__ import main, resolve_inputs
from graphcommitter.pipeline.reader import operation_from_record, read_operations


def write_lines(path, *records):
    path.write_text("\n".join(json.dumps(record) for record in records) + "\n", encoding="utf-8")
    return path


def test_records_become_operations_in_file_order(tmp_path):
    path = write_lines(
        tmp_path / "ops.jsonl",
        {"kind": "add", "reference": "a", "metadata": {"tags": ["x", None, 3], "empty": None}, "content": "body"},
        {"kind": "DELETE", "reference": "b"},
        {"kind": "rename", "reference": "c"},
    )

    add, delete, other = read_operations(path)

    assert isinstance(add, AddOperation)
    assert add.metadata == {"tags": ["x", "3"]}
    assert add.content.read() == b"body"
    assert isinstance(delete, DeleteOperation)
    assert delete.reference == "b"
    assert type(other) is CommitOperation


def test_add_without_content_has_no_stream():
    operation = operation_from_record({"kind": "add", "reference": "a"})

    assert operation.content is None
    assert operation.metadata == {}


@pytest.mark.parametrize("line", ["{not json", "[1, 2]"])
def test_malformed_lines_are_rejected(tmp_path, line):
    path = tmp_path / "bad.jsonl"
    path.write_text(line + "\n", encoding="utf-8")

    with pytest.raises(InvalidOperationError):
        list(read_operations(path))


def test_directories_expand_to_their_operation_files(tmp_path):
    nested = tmp_path / "nested"
    nested.mkdir()
    first = write_lines(tmp_path / "a.jsonl", {"kind": "delete", "reference": "x"})
    second = write_lines(nested / "b.jsonl", {"kind": "delete", "reference": "y"})
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    assert resolve_inputs([tmp_path, first]) == [first, second]


def test_missing_input_is_reported(tmp_path):
    with pytest.raises(FileNotFoundError):
        resolve_inputs([tmp_path / "absent.jsonl"])


def test_cli_reports_an_unreachable_database(tmp_path, monkeypatch):
    def refuse(self, schema):
        raise ServiceUnavailable("connection refused")

    monkeypatch.setattr(Neo4jGraphStore, "ensure_schema", refuse)
    monkeypatch.setenv("GRAPHCOMMITTER_NEO4J_URI", "bolt://localhost:7687")
    monkeypatch.setenv("GRAPHCOMMITTER_NEO4J_USER", "neo4j")
    monkeypatch.setenv("GRAPHCOMMITTER_NEO4J_PASSWORD", "pw")
    path = write_lines(tmp_path / "ops.jsonl", {"kind": "delete", "reference": "x"})

    assert main([str(path), "--log-level", "ERROR"]) == 1
