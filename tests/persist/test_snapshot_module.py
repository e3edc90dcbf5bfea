"""Tests for :mod:`stepgraph.persist.snapshot`."""

from __future__ import annotations

import logging
import pickle

import pytest

from stepgraph import add_graph_action, add_path, count_nodes, create_graph, select_nodes_by_id
from stepgraph.persist.snapshot import SnapshotWriter, load_graph_backup


def test_snapshot_round_trips_full_graph_value(tmp_path):
    graph = create_graph(write_backups=False)
    graph = add_path(graph, n=3)
    graph = select_nodes_by_id(graph, [2])

    path = SnapshotWriter(tmp_path / "backups").save(graph)

    assert path.name.startswith(f"{graph.graph_id}_v00003_")
    restored = load_graph_backup(path)
    assert restored.store == graph.store
    assert restored.selection == graph.selection
    assert list(restored.log) == list(graph.log)


def test_snapshot_failure_is_logged_and_skipped(tmp_path, caplog):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file")
    graph = create_graph(write_backups=False)

    with caplog.at_level(logging.WARNING, logger="stepgraph.persist.snapshot"):
        assert SnapshotWriter(blocker).snapshot(graph) is None

    assert "Skipping backup" in caplog.text


def test_load_graph_backup_rejects_other_objects(tmp_path):
    path = tmp_path / "other.pkl"
    path.write_bytes(pickle.dumps({"nodes": []}))

    with pytest.raises(TypeError):
        load_graph_backup(path)


def test_operations_write_backups_when_enabled(tmp_path):
    graph = create_graph(write_backups=True, backup_dir=str(tmp_path))
    graph = add_path(graph, n=2)

    files = sorted(tmp_path.glob("*.pkl"))
    assert len(files) == 1
    assert load_graph_backup(files[0]).store == graph.store


def test_unpicklable_graph_leaves_no_partial_file(tmp_path, caplog):
    graph = add_path(create_graph(write_backups=False), n=2)
    graph = add_graph_action(graph, "select_nodes", where=lambda row: row["id"] > 1)
    writer = SnapshotWriter(tmp_path)

    with pytest.raises((pickle.PicklingError, AttributeError)):
        writer.save(graph)
    assert list(tmp_path.iterdir()) == []

    with caplog.at_level(logging.WARNING, logger="stepgraph.persist.snapshot"):
        assert writer.snapshot(graph) is None
    assert "Skipping backup" in caplog.text
    assert list(tmp_path.glob("*.pkl")) == []


def test_operations_with_unpicklable_actions_skip_backups(tmp_path):
    graph = create_graph(write_backups=True, backup_dir=str(tmp_path))
    graph = add_graph_action(graph, "select_nodes", where=lambda row: True)

    graph = add_path(graph, n=2)

    assert count_nodes(graph) == 2
    assert list(tmp_path.glob("*.pkl")) == []
