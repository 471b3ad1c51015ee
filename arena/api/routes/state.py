"""GET /api/v1/state: live arena snapshot and event feed (polled by UI)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from arena.api.dependencies import get_engine_manager
from arena.api.engine_manager import EngineManager
from arena.api.schemas import (
    ArenaStateResponse,
    EventSchema,
    GladiatorSchema,
    HazardSchema,
    MatchResultSchema,
    ModifierSchema,
    PowerUpSchema,
    PredictionSchema,
    StatsSchema,
    VotingStatusSchema,
)

router = APIRouter()


def serialize_gladiator(a) -> GladiatorSchema:
    s = a.stats
    return GladiatorSchema(
        id=a.id,
        name=a.name,
        x=a.pos.x,
        y=a.pos.y,
        vx=a.velocity.x,
        vy=a.velocity.y,
        state=a.state.name,
        lifecycle=a.lifecycle.name,
        health=a.health,
        max_health=a.max_health,
        stats=StatsSchema(
            strength=s.strength, speed=s.speed, defense=s.defense,
            intelligence=s.intelligence, aggression=s.aggression, luck=s.luck,
            health=s.health, max_health=s.max_health,
        ) if s else None,
        effective_strength=a.effective_strength() if s else 0.0,
        effective_speed=a.effective_speed() if s else 0.0,
        effective_defense=a.effective_defense() if s else 0.0,
        modifiers=[ModifierSchema(stat=m.stat, multiplier=m.multiplier, source=m.source) for m in a.modifiers],
        target_id=a.target_id,
        powerup_target_id=a.powerup_target_id,
        damage_dealt=a.damage_dealt,
        knockouts=a.knockouts,
    )


def serialize_result(r) -> MatchResultSchema:
    return MatchResultSchema(
        match_id=r.match_id,
        winner_id=r.winner_id,
        winner_name=r.winner_name,
        duration_s=r.duration_s,
        timestamp=r.timestamp,
        end_reason=r.end_reason.name.lower(),
        powerups_collected=r.powerups_collected,
        hazards_triggered=r.hazards_triggered,
        predictions=[
            PredictionSchema(address=p.address, gladiator_id=p.gladiator_id,
                             amount=p.amount, was_correct=p.was_correct)
            for p in r.predictions
        ],
    )


@router.get("/state", response_model=ArenaStateResponse)
def get_state(
    since_tick: int = Query(0, ge=0, description="Only return events since this tick"),
    manager: EngineManager = Depends(get_engine_manager),
) -> ArenaStateResponse:
    snapshot = manager.get_snapshot()
    if snapshot is None:
        raise HTTPException(status_code=503, detail="No snapshot available yet.")

    power_ups = [
        PowerUpSchema(
            id=p.id, kind=p.kind.name.lower(), x=p.pos.x, y=p.pos.y,
            duration_ms=p.payload.duration_ms, multiplier=p.payload.multiplier,
        )
        for p in snapshot.power_ups
    ]
    hazards = [
        HazardSchema(
            id=h.id, kind=h.kind.name.lower(), x=h.pos.x, y=h.pos.y,
            vx=h.velocity.x, vy=h.velocity.y,
            half_width=h.half_extents[0], half_height=h.half_extents[1],
            damage=h.payload.damage,
        )
        for h in snapshot.hazards
    ]
    events = [
        EventSchema(tick=ev.tick, category=ev.category, message=ev.message,
                    entity_ids=list(ev.entity_ids), metadata=ev.metadata)
        for ev in manager.event_log.since_tick(since_tick)
    ]

    voting = None
    loop = manager.loop
    if loop.voting.is_open:
        voting = VotingStatusSchema(
            match_id=loop.voting.current_match_id,
            closes_in_ms=loop.voting.closes_in_ms() or 0,
            candidates=loop.voting.candidates(),
        )

    return ArenaStateResponse(
        tick=snapshot.tick,
        match_id=snapshot.match_id,
        match_state=snapshot.match_state.name,
        time_remaining_s=snapshot.time_remaining_s,
        reset_in_s=snapshot.reset_in_s,
        alive_count=snapshot.alive_count,
        selected_gladiator_id=snapshot.selected_gladiator_id,
        powerups_collected=snapshot.powerups_collected,
        hazards_triggered=snapshot.hazards_triggered,
        gladiators=[serialize_gladiator(a) for a in snapshot.gladiators.values()],
        power_ups=power_ups,
        hazards=hazards,
        events=events,
        voting=voting,
        last_result=serialize_result(snapshot.last_result) if snapshot.last_result else None,
        running=manager.running,
        paused=manager.paused,
    )
