from .types import (
    DIFFICULTY_LEVELS,
    UNASSIGNED,
    LayoutInput,
    Node,
    Tag,
    Viewport,
    make_layout_input,
)
from .config import EngineConfig, ViewportMetrics, get_engine_config, set_engine_config
from .validate import LayoutError, SimulationStateError, validate_layout_input
from .scales import BandScale, PolarScale, cartesian_to_polar, polar_to_cartesian
from .seed import LayoutSeed, SeededNode, active_nodes, build_edges, seed_layout, visible_categories
from .simulation import ForceSimulation, NodeArena, PositionSnapshot, SimulationNode
from .transform import ViewTransform
from .hit_test import node_at, sector_at
from .gestures import (
    GestureCallbacks,
    GestureController,
    PointerEvent,
    transition,
)
from .engine import GraphEngine

__all__ = [
    'DIFFICULTY_LEVELS',
    'UNASSIGNED',
    'LayoutInput',
    'Node',
    'Tag',
    'Viewport',
    'make_layout_input',
    'EngineConfig',
    'ViewportMetrics',
    'get_engine_config',
    'set_engine_config',
    'LayoutError',
    'SimulationStateError',
    'validate_layout_input',
    'BandScale',
    'PolarScale',
    'cartesian_to_polar',
    'polar_to_cartesian',
    'LayoutSeed',
    'SeededNode',
    'active_nodes',
    'build_edges',
    'seed_layout',
    'visible_categories',
    'ForceSimulation',
    'NodeArena',
    'PositionSnapshot',
    'SimulationNode',
    'ViewTransform',
    'node_at',
    'sector_at',
    'GestureCallbacks',
    'GestureController',
    'PointerEvent',
    'transition',
    'GraphEngine',
]
