"""Example: replay a drag, a tap and a pinch against a live engine."""

import argparse
import asyncio
import logging

import numpy as np

from skillgraph import GraphEngine, Node, Tag, make_layout_input
from skillgraph.gestures import down, move, up

NODES = [
    Node("bfs", title="Breadth-first search", tags=["Graphs"], difficulty="Easy"),
    Node("dijkstra", title="Dijkstra", tags=["Graphs"], difficulty="Hard", links=["bfs"]),
    Node("knapsack", title="Knapsack", tags=["DP"], difficulty="Medium"),
]
TAGS = [Tag("Graphs", "#3a86ff"), Tag("DP", "#ff006e")]


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format="%(levelname)s:%(name)s:%(message)s", force=True)


async def run() -> None:
    engine = GraphEngine(
        on_node_click=lambda node_id: print(f"-> open {node_id}"),
        on_sector_click=lambda tag: print(f"-> zoom into {tag}"),
        on_background_click=lambda: print("-> back to overview"),
        rng=np.random.default_rng(7),
    )
    layout = make_layout_input(NODES, TAGS, 600, 600)
    engine.update(layout)
    await engine.animate(0)

    x, y = engine.screen_position("knapsack")
    print(f"knapsack on screen at ({x:.1f}, {y:.1f})")

    # drag 50px: the node follows the pointer, no click
    engine.handle_event(down((x, y)))
    engine.handle_event(move((x + 50.0, y)))
    engine.frame()
    print("dragged to", engine.snapshot.position("knapsack"))
    engine.handle_event(up((x + 50.0, y)))
    await engine.animate(0)

    # short tap: a click
    x, y = engine.screen_position("knapsack")
    engine.handle_event(down((x, y)))
    engine.handle_event(up((x + 1.0, y)))

    # tap in an empty corner of the Graphs sector, then outside the graph
    engine.handle_event(down((300.0 + 150.0, 300.0 - 150.0)))
    engine.handle_event(up((300.0 + 150.0, 300.0 - 150.0)))
    engine.handle_event(down((2.0, 2.0)))
    engine.handle_event(up((2.0, 2.0)))

    # pinch out to double the scale
    engine.handle_event(down((250.0, 300.0), (350.0, 300.0)))
    engine.handle_event(move((200.0, 300.0), (400.0, 300.0)))
    engine.handle_event(up((400.0, 300.0), (200.0, 300.0)))
    engine.handle_event(up((200.0, 300.0)))
    print("view transform:", engine.transform)
    engine.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay touch gestures on a skill graph")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    args = parser.parse_args()
    _configure_logging(args.log_level)
    asyncio.run(run())


if __name__ == "__main__":
    main()
