"""Force simulation: arena storage, forces, integrator and snapshots."""

from .arena import NodeArena, SimulationNode
from .engine import ForceSimulation, TickListener
from .forces import CollideForce, Force, LinkForce, ManyBodyForce, PositionForce, RadialForce
from .snapshot import PositionSnapshot

__all__ = [
    "CollideForce",
    "Force",
    "ForceSimulation",
    "LinkForce",
    "ManyBodyForce",
    "NodeArena",
    "PositionForce",
    "PositionSnapshot",
    "RadialForce",
    "SimulationNode",
    "TickListener",
]
