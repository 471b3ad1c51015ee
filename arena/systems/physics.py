"""Physics host boundary and a minimal kinematic reference host.

The arena core never integrates motion itself: it emits one desired
velocity per agent per tick and consumes overlap notifications.  Any host
satisfying ``PhysicsHost`` can drive it; ``KinematicPhysics`` is the
in-process implementation used by the headless runner, the API server
and the tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from arena.core.models import Vector2, ZERO

AGENT = "agent"
POWERUP = "powerup"
HAZARD = "hazard"


@dataclass(frozen=True, slots=True)
class Contact:
    """One overlap reported by the host for a single step."""

    kind: str            # "agent_agent" | "agent_powerup" | "agent_hazard"
    first_id: int        # always an agent id
    second_id: int


class PhysicsHost(Protocol):
    """What the arena needs from a physics engine."""

    width: float
    height: float

    def add_body(
        self,
        kind: str,
        body_id: int,
        pos: Vector2,
        half_extents: tuple[float, float],
        velocity: Vector2 = ZERO,
        gravity: float = 0.0,
        bounce: bool = False,
    ) -> None: ...

    def remove_body(self, kind: str, body_id: int) -> None: ...

    def set_velocity(self, kind: str, body_id: int, velocity: Vector2) -> None: ...

    def velocity(self, kind: str, body_id: int) -> Vector2: ...

    def position(self, kind: str, body_id: int) -> Vector2 | None: ...

    def stop_all(self) -> None: ...

    def step(self, dt_s: float) -> list[Contact]: ...

    def clear(self) -> None: ...


@dataclass(slots=True)
class _Body:
    kind: str
    body_id: int
    pos: Vector2
    half_w: float
    half_h: float
    vel: Vector2 = ZERO
    gravity: float = 0.0
    bounce: bool = False

    def overlaps(self, other: _Body) -> bool:
        return (
            abs(self.pos.x - other.pos.x) <= self.half_w + other.half_w
            and abs(self.pos.y - other.pos.y) <= self.half_h + other.half_h
        )


class KinematicPhysics:
    """Velocity integration with world bounds and AABB overlap reporting.

    - Agents are clamped inside the world.
    - ``bounce`` bodies reflect off the world edges (spike walls).
    - Everything else moves freely and may leave the world (fireballs).
    """

    __slots__ = ("width", "height", "_bodies")

    def __init__(self, width: float, height: float) -> None:
        self.width = float(width)
        self.height = float(height)
        self._bodies: dict[tuple[str, int], _Body] = {}

    def add_body(
        self,
        kind: str,
        body_id: int,
        pos: Vector2,
        half_extents: tuple[float, float],
        velocity: Vector2 = ZERO,
        gravity: float = 0.0,
        bounce: bool = False,
    ) -> None:
        self._bodies[(kind, body_id)] = _Body(
            kind=kind, body_id=body_id, pos=pos,
            half_w=float(half_extents[0]), half_h=float(half_extents[1]),
            vel=velocity, gravity=gravity, bounce=bounce,
        )

    def remove_body(self, kind: str, body_id: int) -> None:
        self._bodies.pop((kind, body_id), None)

    def set_velocity(self, kind: str, body_id: int, velocity: Vector2) -> None:
        body = self._bodies.get((kind, body_id))
        if body is not None:
            body.vel = velocity

    def velocity(self, kind: str, body_id: int) -> Vector2:
        body = self._bodies.get((kind, body_id))
        return body.vel if body is not None else ZERO

    def position(self, kind: str, body_id: int) -> Vector2 | None:
        body = self._bodies.get((kind, body_id))
        return body.pos if body is not None else None

    def stop_all(self) -> None:
        for body in self._bodies.values():
            body.vel = ZERO
            body.gravity = 0.0

    def step(self, dt_s: float) -> list[Contact]:
        for body in self._bodies.values():
            self._integrate(body, dt_s)
        return self._contacts()

    def clear(self) -> None:
        self._bodies.clear()

    # -- internals --

    def _integrate(self, body: _Body, dt_s: float) -> None:
        vx, vy = body.vel.x, body.vel.y + body.gravity * dt_s
        x, y = body.pos.x + vx * dt_s, body.pos.y + vy * dt_s

        if body.kind == AGENT:
            x = min(max(x, body.half_w), self.width - body.half_w)
            y = min(max(y, body.half_h), self.height - body.half_h)
        elif body.bounce:
            if (x < 0 and vx < 0) or (x > self.width and vx > 0):
                vx = -vx
                x = min(max(x, 0.0), self.width)
            if (y < 0 and vy < 0) or (y > self.height and vy > 0):
                vy = -vy
                y = min(max(y, 0.0), self.height)

        body.pos = Vector2(x, y)
        body.vel = Vector2(vx, vy)

    def _contacts(self) -> list[Contact]:
        agents = [b for b in self._bodies.values() if b.kind == AGENT]
        others = [b for b in self._bodies.values() if b.kind != AGENT]
        contacts: list[Contact] = []
        for i, a in enumerate(agents):
            for b in agents[i + 1:]:
                if a.overlaps(b):
                    contacts.append(Contact("agent_agent", a.body_id, b.body_id))
        for a in agents:
            for o in others:
                if a.overlaps(o):
                    kind = "agent_powerup" if o.kind == POWERUP else "agent_hazard"
                    contacts.append(Contact(kind, a.body_id, o.body_id))
        return contacts
