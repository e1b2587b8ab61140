import math

import numpy as np
import pytest

from skillgraph import UNASSIGNED, Node, Tag, make_layout_input, seed_layout
from skillgraph.seed import active_nodes, build_edges, visible_categories


def _tags(*names):
    return [Tag(name) for name in names]


def _seed(nodes, tags, width=400, height=800, seed=0, **kwargs):
    layout = make_layout_input(nodes, tags, width, height, **kwargs)
    return seed_layout(layout, np.random.default_rng(seed))


def test_single_easy_node_targets_middle_of_first_sector():
    result = _seed([Node("n1", "Python", ("A",), "Easy")], _tags("A", "B", "C"))
    (seeded,) = result.nodes

    radius = result.scale.level_radius("Easy")
    expected = (radius * math.cos(math.pi / 3 - math.pi / 2), radius * math.sin(math.pi / 3 - math.pi / 2))
    assert seeded.target == pytest.approx(expected)
    assert seeded.radial_target is None
    assert abs(seeded.position[0] - expected[0]) <= 5.0
    assert abs(seeded.position[1] - expected[1]) <= 5.0
    assert radius < result.scale.level_radius("Medium")


def test_seeding_is_deterministic_for_same_rng_seed():
    nodes = [Node(f"n{i}", tags=("A",)) for i in range(5)]
    first = _seed(nodes, _tags("A"), seed=42)
    second = _seed(nodes, _tags("A"), seed=42)
    assert [s.position for s in first.nodes] == [s.position for s in second.nodes]


def test_unassigned_nodes_are_spread_on_outer_ring():
    nodes = [Node("u1"), Node("u2"), Node("t1", tags=("A",)), Node("u3")]
    result = _seed(nodes, _tags("A"))
    ring = [s for s in result.nodes if s.on_ring]
    assert [s.id for s in ring] == ["u1", "u2", "u3"]
    for s in ring:
        assert s.target is None
        assert s.radial_target == pytest.approx(result.scale.unassigned_radius)
        r = math.hypot(*s.position)
        assert abs(r - result.scale.unassigned_radius) <= 10.0 * math.sqrt(2) + 1e-9

    # first slot sits at twelve o'clock
    assert ring[0].position[1] < 0
    assert abs(ring[0].position[0]) <= 10.0


def test_zero_tags_parks_every_node_on_ring():
    nodes = [Node("a", tags=("Ghost",)), Node("b")]
    result = _seed(nodes, [])
    assert not result.scale.has_sectors
    assert all(s.on_ring for s in result.nodes)


def test_hidden_tag_removes_band_and_nodes():
    nodes = [Node("a", tags=("A",)), Node("b", tags=("B",)), Node("c", tags=("C", "B"))]
    result = _seed(nodes, _tags("A", "B", "C"), visibility={"B": False})
    assert result.scale.angular.domain == ("A", "C")
    assert result.ids == ("a", "c")
    assert result.scale.sector_bounds("C") == pytest.approx((math.pi, 2 * math.pi))


def test_hidden_unassigned_ring():
    nodes = [Node("a", tags=("A",)), Node("u")]
    result = _seed(nodes, _tags("A"), visibility={UNASSIGNED: False})
    assert result.ids == ("a",)


def test_zoomed_mode_uses_radial_targets_and_small_disk():
    nodes = [
        Node("a", tags=("A",), difficulty="Hard"),
        Node("b", tags=("B", "A"), difficulty="Easy"),
        Node("c", tags=("B",)),
        Node("u"),
    ]
    result = _seed(nodes, _tags("A", "B"), zoomed="A")
    assert result.zoomed
    assert result.ids == ("a", "b")
    assert result.scale.angular.domain == ("A",)
    by_id = {s.id: s for s in result.nodes}
    assert by_id["a"].radial_target == pytest.approx(result.scale.level_radius("Hard"))
    assert by_id["b"].radial_target == pytest.approx(result.scale.level_radius("Easy"))
    for s in result.nodes:
        assert s.target is None
        assert math.hypot(*s.position) <= 25.0 + 1e-9


def test_unassigned_focus_keeps_only_ring_nodes():
    nodes = [Node("a", tags=("A",)), Node("u1"), Node("u2")]
    layout = make_layout_input(nodes, _tags("A"), 800, 800, zoomed=UNASSIGNED)
    assert [n.id for n in active_nodes(layout)] == ["u1", "u2"]
    assert visible_categories(layout) == ("A",)
    result = seed_layout(layout, np.random.default_rng(1))
    assert not result.zoomed
    assert all(s.on_ring for s in result.nodes)


def test_collapsed_difficulty_targets_shared_radius():
    nodes = [Node("e", tags=("A",), difficulty="Easy"), Node("h", tags=("A",), difficulty="Hard")]
    result = _seed(nodes, _tags("A"), show_difficulty=False)
    radii = [math.hypot(*s.target) for s in result.nodes]
    assert radii == pytest.approx([0.6 * result.scale.outer_radius] * 2)


def test_build_edges_drops_dangling_self_and_duplicate_links():
    nodes = [
        Node("a", links=("b", "missing", "a", "b")),
        Node("b", links=("c",)),
        Node("c", links=("a",)),
    ]
    assert build_edges(nodes) == [("a", "b"), ("b", "c"), ("c", "a")]


def test_edges_only_between_active_nodes():
    nodes = [Node("a", tags=("A",), links=("b",)), Node("b", tags=("B",), links=("a",))]
    result = _seed(nodes, _tags("A", "B"), visibility={"B": False})
    assert result.edges == []
