"""Arena systems: RNG, stats, scheduling, physics and targeting."""

from arena.systems.rng import ArenaRNG
from arena.systems.scheduler import Scheduler, Timer
from arena.systems.physics import Contact, KinematicPhysics, PhysicsHost
from arena.systems.stats import StatGenerator
from arena.systems.targeting import TargetingService

__all__ = [
    "ArenaRNG",
    "Contact",
    "KinematicPhysics",
    "PhysicsHost",
    "Scheduler",
    "StatGenerator",
    "TargetingService",
    "Timer",
]
