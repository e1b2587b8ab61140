import math
from itertools import combinations

import numpy as np
import pytest

from skillgraph import (
    EngineConfig,
    ForceSimulation,
    Node,
    SimulationStateError,
    Tag,
    make_layout_input,
    seed_layout,
)


def _simulation(nodes, tags, width=800, height=800, seed=7, config=None, **kwargs):
    layout = make_layout_input(nodes, [Tag(t) for t in tags], width, height, **kwargs)
    rng = np.random.default_rng(seed)
    seed_result = seed_layout(layout, rng, config=config)
    return seed_result, ForceSimulation.from_seed(seed_result, rng=rng, config=config)


def test_overview_registers_positional_forces():
    _, sim = _simulation([Node("a", tags=("A",))], ["A"])
    assert sim.force_names == ("link", "charge", "collide", "x", "y", "radial_unassigned")


def test_zoomed_registers_radial_force_only():
    _, sim = _simulation([Node("a", tags=("A",))], ["A", "B"], zoomed="A")
    assert sim.force_names == ("link", "charge", "collide", "radial")


def test_single_node_converges_to_target():
    seed, sim = _simulation([Node("a", tags=("A",), difficulty="Medium")], ["A", "B", "C"])
    sim.run_until_settled()
    assert not sim.running
    target = seed.nodes[0].target
    x, y = sim.snapshot.position("a")
    assert math.hypot(x - target[0], y - target[1]) < 0.5


def test_nodes_in_separate_sectors_settle_near_targets():
    nodes = [Node(f"n{i}", tags=(tag,), difficulty=level)
             for i, (tag, level) in enumerate([("A", "Easy"), ("B", "Medium"), ("C", "Hard"), ("D", "Medium")])]
    seed, sim = _simulation(nodes, ["A", "B", "C", "D"])
    snapshot = sim.run_until_settled()
    for seeded in seed.nodes:
        x, y = snapshot.position(seeded.id)
        assert math.hypot(x - seeded.target[0], y - seeded.target[1]) < 3.0


def test_crowded_sector_does_not_overlap_after_settling():
    nodes = [Node(f"n{i}", tags=("A",)) for i in range(6)]
    seed, sim = _simulation(nodes, ["A", "B"])
    snapshot = sim.run_until_settled()
    radius = seed.metrics.collision_radius
    for i, j in combinations(range(len(snapshot)), 2):
        dist = np.linalg.norm(snapshot.positions[i] - snapshot.positions[j])
        assert dist >= radius


def test_unassigned_nodes_stay_near_outer_ring():
    nodes = [Node(f"u{i}") for i in range(4)] + [Node("a", tags=("A",))]
    seed, sim = _simulation(nodes, ["A"])
    snapshot = sim.run_until_settled()
    ring = seed.scale.unassigned_radius
    for node_id in ("u0", "u1", "u2", "u3"):
        assert abs(math.hypot(*snapshot.position(node_id)) - ring) < 10.0


def test_zoomed_nodes_settle_on_difficulty_rings():
    nodes = [Node("e1", tags=("A",), difficulty="Easy"), Node("h1", tags=("A",), difficulty="Hard")]
    seed, sim = _simulation(nodes, ["A"], zoomed="A")
    snapshot = sim.run_until_settled()
    assert abs(math.hypot(*snapshot.position("e1")) - seed.scale.level_radius("Easy")) < 5.0
    assert abs(math.hypot(*snapshot.position("h1")) - seed.scale.level_radius("Hard")) < 5.0


def test_fixed_node_is_not_moved_but_still_repels():
    nodes = [Node("a", tags=("A",)), Node("b", tags=("A",))]
    _, sim = _simulation(nodes, ["A"])
    sim.fix_node("a", (0.0, 0.0))
    before = sim.snapshot.position("b")
    sim.tick(5)
    assert sim.snapshot.position("a") == pytest.approx((0.0, 0.0))
    assert "a" in sim.snapshot.fixed
    assert sim.node("a").fixed_position == pytest.approx((0.0, 0.0))
    assert sim.node("a").velocity == (0.0, 0.0)
    assert sim.snapshot.position("b") != before

    sim.release_node("a")
    assert sim.node("a").fixed_position is None


def test_pin_at_current_position():
    _, sim = _simulation([Node("a", tags=("A",))], ["A"])
    current = sim.snapshot.position("a")
    assert sim.fix_node("a") == pytest.approx(current)


def test_energy_target_keeps_simulation_hot_until_released():
    _, sim = _simulation([Node("a", tags=("A",)), Node("b", tags=("B",))], ["A", "B"])
    sim.run_until_settled()
    assert not sim.running

    sim.set_energy_target(0.3)
    sim.start()
    for _ in range(600):
        assert sim.step() is not None
    assert sim.energy == pytest.approx(0.3, abs=0.01)

    sim.set_energy_target(0.0)
    ticks = sum(1 for _ in sim.run(max_ticks=2000))
    assert 0 < ticks < 2000
    assert sim.settled
    assert sim.step() is None


def test_snapshots_are_immutable_copies():
    _, sim = _simulation([Node("a", tags=("A",))], ["A"])
    first = sim.tick()
    with pytest.raises(ValueError):
        first.positions[0, 0] = 123.0
    second = sim.tick()
    assert second.tick == first.tick + 1
    assert first.positions is not second.positions


def test_listeners_receive_every_tick():
    _, sim = _simulation([Node("a", tags=("A",))], ["A"])
    seen = []
    unsubscribe = sim.on_tick(lambda snap: seen.append(snap.tick))
    sim.tick()
    sim.tick()
    unsubscribe()
    sim.tick()
    assert seen == [1, 2]


def test_empty_node_set_never_ticks():
    _, sim = _simulation([], ["A"])
    sim.start()
    assert not sim.running
    assert sim.step() is None
    assert len(sim.snapshot) == 0
    assert list(sim.run()) == []


def test_closed_simulation_rejects_use_and_clears_pins():
    _, sim = _simulation([Node("a", tags=("A",))], ["A"])
    sim.fix_node("a")
    sim.close()
    assert not sim.arena.fixed_mask.any()
    assert sim.step() is None
    with pytest.raises(SimulationStateError):
        sim.tick()
    with pytest.raises(SimulationStateError):
        sim.start()


def test_unknown_node_raises():
    _, sim = _simulation([Node("a", tags=("A",))], ["A"])
    with pytest.raises(SimulationStateError):
        sim.fix_node("nope")


def test_reset_reheats():
    _, sim = _simulation([Node("a", tags=("A",))], ["A"])
    sim.run_until_settled()
    sim.reset()
    assert sim.running
    assert sim.energy == pytest.approx(1.0)


def test_edges_are_carried_in_snapshot():
    nodes = [Node("a", tags=("A",), links=("b", "zzz")), Node("b", tags=("A",))]
    _, sim = _simulation(nodes, ["A"])
    snap = sim.tick()
    assert snap.edge_ids() == [("a", "b")]
    assert len(snap.edge_segments()) == 1


def test_carry_over_positions_when_enabled():
    config = EngineConfig(carry_over_positions=True)
    nodes = [Node("a", tags=("A",)), Node("b", tags=("B",))]
    _, first = _simulation(nodes, ["A", "B"], config=config)
    first.run_until_settled()
    layout = make_layout_input(nodes, [Tag("A"), Tag("B")], 800, 800, show_difficulty=False)
    seed = seed_layout(layout, np.random.default_rng(1), config=config)
    second = ForceSimulation.from_seed(seed, config=config, previous=first)
    assert second.snapshot.position("a") == pytest.approx(first.snapshot.position("a"))


def test_non_finite_pin_keeps_existing_pin():
    _, sim = _simulation([Node("a", tags=("A",))], ["A"])
    sim.fix_node("a", (10.0, 20.0))
    assert sim.fix_node("a", (float("nan"), 5.0)) == pytest.approx((10.0, 20.0))
    sim.tick()
    assert sim.snapshot.position("a") == pytest.approx((10.0, 20.0))
    assert "a" in sim.snapshot.fixed


def test_non_finite_pin_on_free_node_pins_in_place():
    _, sim = _simulation([Node("a", tags=("A",))], ["A"])
    current = sim.snapshot.position("a")
    assert sim.fix_node("a", (float("nan"), float("nan"))) == pytest.approx(current)
    assert sim.node("a").fixed_position == pytest.approx(current)
