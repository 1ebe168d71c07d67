import random

import pytest

from dagcanvas.backend import GraphEditor, sequential_ids
from dagcanvas.core import LayoutConfigError, Port, VerdictReason


@pytest.fixture
def editor():
    return GraphEditor(rng=random.Random(42))


def _chain(editor, *labels):
    nodes = [editor.add_node(label) for label in labels]
    for src, tgt in zip(nodes, nodes[1:]):
        editor.add_edge(src.id, tgt.id)
    return nodes


def test_sequential_ids():
    next_id = sequential_ids()
    assert [next_id(), next_id(), next_id()] == ["node_0", "node_1", "node_2"]
    assert sequential_ids("n")() == "n0"


def test_add_node_uses_injected_id_generator(editor):
    ids = iter(["alpha", "beta"])
    custom = GraphEditor(id_generator=lambda: next(ids))
    assert custom.add_node("A").id == "alpha"
    assert custom.add_node("B").id == "beta"
    assert editor.add_node("A").id == "node_0"


def test_add_node_random_initial_position(editor):
    for _ in range(20):
        node = editor.add_node("A")
        assert 0 <= node.x < 250
        assert 0 <= node.y < 250


def test_initial_positions_follow_seeded_rng():
    first = GraphEditor(rng=random.Random(1)).add_node("A")
    second = GraphEditor(rng=random.Random(1)).add_node("A")
    assert (first.x, first.y) == (second.x, second.y)


@pytest.mark.parametrize("label", ["", "   "])
def test_add_node_rejects_empty_label(editor, label):
    with pytest.raises(ValueError):
        editor.add_node(label)
    assert editor.nodes == []
    assert editor.revision == 0


def test_duplicate_generated_id_raises():
    custom = GraphEditor(id_generator=lambda: "same")
    custom.add_node("A")
    with pytest.raises(ValueError):
        custom.add_node("B")
    assert len(custom.nodes) == 1


def test_verdict_tracks_every_mutation(editor):
    assert editor.verdict.reason == VerdictReason.TOO_FEW_NODES

    a = editor.add_node("A")
    assert editor.verdict.reason == VerdictReason.TOO_FEW_NODES

    b = editor.add_node("B")
    assert editor.verdict.reason == VerdictReason.ISOLATED_NODE

    editor.add_edge(a.id, b.id)
    assert editor.verdict.is_valid

    editor.add_edge(b.id, a.id)
    assert editor.verdict.reason == VerdictReason.CYCLE_DETECTED


def test_self_connection_is_rejected(editor):
    a = editor.add_node("A")
    revision = editor.revision
    assert editor.add_edge(a.id, a.id) is None
    assert editor.edges == []
    assert editor.revision == revision


def test_duplicate_connection_is_rejected(editor):
    a, b = _chain(editor, "A", "B")
    revision = editor.revision
    assert editor.add_edge(a.id, b.id) is None
    assert len(editor.edges) == 1
    assert editor.revision == revision


def test_reverse_connection_is_a_different_edge(editor):
    a, b = _chain(editor, "A", "B")
    edge = editor.add_edge(b.id, a.id)
    assert edge is not None
    assert len(editor.edges) == 2


@pytest.mark.parametrize("source_handle,target_handle", [
    (Port.SOURCE, Port.SOURCE),
    (Port.TARGET, Port.TARGET),
    ("left", "right"),
])
def test_mismatched_ports_are_rejected(editor, source_handle, target_handle):
    a = editor.add_node("A")
    b = editor.add_node("B")
    assert editor.add_edge(a.id, b.id, source_handle, target_handle) is None
    assert editor.edges == []


def test_explicit_default_ports_are_accepted(editor):
    a = editor.add_node("A")
    b = editor.add_node("B")
    edge = editor.add_edge(a.id, b.id, "right", "left")
    assert edge.id == f"{a.id}:right->{b.id}:left"


def test_connect_unknown_node_raises(editor):
    a = editor.add_node("A")
    with pytest.raises(ValueError):
        editor.add_edge(a.id, "ghost")
    with pytest.raises(ValueError):
        editor.add_edge("ghost", a.id)


def test_delete_selected_cascades_edges(editor):
    a, b, c = _chain(editor, "A", "B", "C")
    editor.select(node_ids=[b.id])

    nodes, edges = editor.delete_selected()

    assert [n.id for n in nodes] == [b.id]
    assert len(edges) == 2
    assert [n.id for n in editor.nodes] == [a.id, c.id]
    assert editor.edges == []
    assert editor.get_edges_for_node(a.id) == []
    assert editor.verdict.reason == VerdictReason.ISOLATED_NODE


def test_delete_selected_edge_only(editor):
    a, b, c = _chain(editor, "A", "B", "C")
    first_edge = editor.edges[0]
    editor.select(edge_ids=[first_edge.id])

    nodes, edges = editor.delete_selected()

    assert nodes == []
    assert [e.id for e in edges] == [first_edge.id]
    assert len(editor.nodes) == 3
    assert editor.verdict.reason == VerdictReason.ISOLATED_NODE


def test_delete_with_empty_selection_is_noop(editor):
    _chain(editor, "A", "B")
    revision = editor.revision
    assert editor.delete_selected() == ([], [])
    assert editor.revision == revision


def test_select_replaces_or_extends(editor):
    a, b = _chain(editor, "A", "B")
    editor.select(node_ids=[a.id])
    editor.select(node_ids=[b.id])
    assert editor.get_selection()["node_ids"] == [b.id]

    editor.select(node_ids=[a.id], additive=True)
    assert editor.get_selection()["node_ids"] == [a.id, b.id]

    editor.clear_selection()
    assert editor.get_selection() == {"node_ids": [], "edge_ids": []}


def test_select_unknown_id_changes_nothing(editor):
    a, b = _chain(editor, "A", "B")
    editor.select(node_ids=[a.id])
    with pytest.raises(ValueError):
        editor.select(node_ids=[b.id, "ghost"])
    assert editor.get_selection()["node_ids"] == [a.id]


def test_selection_is_not_structural(editor):
    a, b = _chain(editor, "A", "B")
    revision = editor.revision
    editor.select(node_ids=[a.id])
    assert editor.revision == revision


def test_on_change_receives_verdicts(editor):
    seen = []
    editor.on_change(seen.append)
    _chain(editor, "A", "B")
    assert [v.reason for v in seen] == [
        VerdictReason.TOO_FEW_NODES,
        VerdictReason.ISOLATED_NODE,
        None,
    ]


def test_snapshot_is_isolated_from_later_edits(editor):
    a, b = _chain(editor, "A", "B")
    snapshot = editor.snapshot()
    editor.get_node(a.id).x = 12345
    editor.add_node("C")
    assert snapshot.get_node(a.id).x != 12345
    assert len(snapshot.nodes) == 2
    assert snapshot.revision == editor.revision - 1


def test_auto_layout_applies_positions(editor):
    a, b, c = _chain(editor, "A", "B", "C")
    result = editor.auto_layout()
    assert set(result.positions) == {a.id, b.id, c.id}
    assert [(n.x, n.y) for n in editor.nodes] == [(0, 0), (222, 0), (444, 0)]


def test_auto_layout_does_not_change_topology(editor):
    _chain(editor, "A", "B", "C")
    edges_before = [e.id for e in editor.edges]
    revision = editor.revision
    editor.auto_layout("TB")
    assert [e.id for e in editor.edges] == edges_before
    assert editor.revision == revision


def test_auto_layout_notifies_fit(editor):
    fits = []
    editor.on_fit(fits.append)
    _chain(editor, "A", "B")
    editor.auto_layout()
    assert fits == [(0, 0, 394, 36)]


def test_stale_layout_is_discarded(editor):
    a, b = _chain(editor, "A", "B")
    result = editor.compute_layout()
    before = [(n.x, n.y) for n in editor.nodes]

    editor.add_node("C")

    assert editor.apply_layout(result) is False
    assert [(n.x, n.y) for n in editor.nodes[:2]] == before


def test_fresh_layout_is_applied(editor):
    _chain(editor, "A", "B")
    result = editor.compute_layout()
    assert editor.apply_layout(result) is True


def test_unknown_direction_leaves_positions_untouched(editor):
    _chain(editor, "A", "B")
    before = [(n.x, n.y) for n in editor.nodes]
    with pytest.raises(LayoutConfigError):
        editor.auto_layout("sideways")
    assert [(n.x, n.y) for n in editor.nodes] == before


def test_layout_of_cyclic_graph_does_not_crash(editor):
    a, b = _chain(editor, "A", "B")
    editor.add_edge(b.id, a.id)
    result = editor.auto_layout()
    assert set(result.positions) == {a.id, b.id}


def test_new_graph_keeps_ids_unique(editor):
    first = editor.add_node("A")
    editor.new_graph()
    assert editor.nodes == []
    assert editor.verdict.reason == VerdictReason.TOO_FEW_NODES
    assert editor.add_node("A").id != first.id


def test_bounds(editor):
    assert editor.bounds() is None
    _chain(editor, "A", "B")
    editor.auto_layout("TB")
    assert editor.bounds() == (0, 0, 172, 122)


def test_get_state(editor):
    a, b = _chain(editor, "A", "B")
    state = editor.get_state()
    assert [n["id"] for n in state["nodes"]] == [a.id, b.id]
    assert state["edges"][0]["source"] == a.id
    assert state["verdict"]["valid"] is True
    assert state["revision"] == 3
