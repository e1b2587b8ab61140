"""Example: seed a small skill graph and run the simulation until it settles."""

import argparse
import logging
import math

import numpy as np

from skillgraph import GraphEngine, Node, Tag, UNASSIGNED, make_layout_input

NODES = [
    Node("two-sum", title="Two Sum", tags=["Arrays", "Hashing"], difficulty="Easy", links=["3sum"]),
    Node("3sum", title="3Sum", tags=["Arrays"], difficulty="Medium"),
    Node("trap", title="Trapping Rain Water", tags=["Arrays"], difficulty="Hard"),
    Node("group-anagrams", title="Group Anagrams", tags=["Hashing"], difficulty="Medium"),
    Node("course-schedule", title="Course Schedule", tags=["Graphs"], difficulty="Medium", links=["two-sum"]),
    Node("word-ladder", title="Word Ladder", tags=["Graphs"], difficulty="Hard"),
    Node("fizzbuzz", title="FizzBuzz"),
]
TAGS = [Tag("Arrays", "#e4572e"), Tag("Hashing", "#17bebb"), Tag("Graphs", "#ffc914")]


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format="%(levelname)s:%(name)s:%(message)s", force=True)


def main() -> None:
    parser = argparse.ArgumentParser(description="Settle a radial skill graph layout")
    parser.add_argument("--width", type=float, default=1000.0)
    parser.add_argument("--height", type=float, default=800.0)
    parser.add_argument("--zoom", default=None, help=f"Tag to focus, or {UNASSIGNED}")
    parser.add_argument("--hide-difficulty", action="store_true")
    parser.add_argument("--seed", type=int, default=123)
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    args = parser.parse_args()
    _configure_logging(args.log_level)

    engine = GraphEngine(rng=np.random.default_rng(args.seed))
    engine.update(
        make_layout_input(
            NODES,
            TAGS,
            args.width,
            args.height,
            zoomed=args.zoom,
            show_difficulty=not args.hide_difficulty,
        )
    )
    frames = 0
    while engine.frame() is not None:
        frames += 1

    snapshot = engine.snapshot
    print(f"Settled after {frames} frames (energy={snapshot.energy:.5f})")
    for level, radius in engine.seed.scale.ring_radii():
        print(f"  ring {level}: r={radius:.1f}")
    for node_id, (x, y) in snapshot.as_dict().items():
        print(f"{node_id:>16}: ({x:8.2f}, {y:8.2f})  r={math.hypot(x, y):.1f}")
    for source, target in snapshot.edge_ids():
        print(f"  edge {source} -> {target}")
    engine.close()


if __name__ == "__main__":
    main()
