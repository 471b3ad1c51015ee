"""Pydantic request/response models for the REST API."""

from __future__ import annotations

from pydantic import BaseModel, Field


# --- Arena state ---

class StatsSchema(BaseModel):
    strength: float
    speed: float
    defense: float
    intelligence: float
    aggression: float
    luck: float
    health: int
    max_health: int


class ModifierSchema(BaseModel):
    stat: str
    multiplier: float
    source: str = ""


class GladiatorSchema(BaseModel):
    id: int
    name: str
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    state: str
    lifecycle: str
    health: int
    max_health: int
    stats: StatsSchema | None = None
    effective_strength: float = 0.0
    effective_speed: float = 0.0
    effective_defense: float = 0.0
    modifiers: list[ModifierSchema] = Field(default_factory=list)
    target_id: int | None = None
    powerup_target_id: int | None = None
    damage_dealt: int = 0
    knockouts: int = 0


class PowerUpSchema(BaseModel):
    id: int
    kind: str
    x: float
    y: float
    duration_ms: int = 0
    multiplier: float = 1.0


class HazardSchema(BaseModel):
    id: int
    kind: str
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    half_width: float
    half_height: float
    damage: int = 0


class EventSchema(BaseModel):
    tick: int
    category: str
    message: str
    entity_ids: list[int] = Field(default_factory=list)
    metadata: dict | None = None


class PredictionSchema(BaseModel):
    address: str
    gladiator_id: int
    amount: int
    was_correct: bool = False


class MatchResultSchema(BaseModel):
    match_id: int
    winner_id: int | None = None
    winner_name: str | None = None
    duration_s: float
    timestamp: float
    end_reason: str
    powerups_collected: int = 0
    hazards_triggered: int = 0
    predictions: list[PredictionSchema] = Field(default_factory=list)


class VotingStatusSchema(BaseModel):
    match_id: int
    closes_in_ms: int
    candidates: dict[int, str] = Field(default_factory=dict)


class ArenaStateResponse(BaseModel):
    tick: int
    match_id: int
    match_state: str
    time_remaining_s: int
    reset_in_s: float | None = None
    alive_count: int
    selected_gladiator_id: int | None = None
    powerups_collected: int = 0
    hazards_triggered: int = 0
    gladiators: list[GladiatorSchema]
    power_ups: list[PowerUpSchema]
    hazards: list[HazardSchema]
    events: list[EventSchema]
    voting: VotingStatusSchema | None = None
    last_result: MatchResultSchema | None = None
    running: bool = False
    paused: bool = False


# --- Commands ---

class SelectionResponse(BaseModel):
    gladiator: GladiatorSchema
    match_id: int


class PredictionRequest(BaseModel):
    address: str = Field(..., min_length=1)
    gladiator_id: int
    amount: int = Field(..., gt=0)


class PredictionResponse(BaseModel):
    success: bool
    message: str
    match_id: int
    prediction: PredictionSchema | None = None
    balance: int


class VoteRequest(BaseModel):
    address: str = Field(..., min_length=1)
    gladiator_id: int


class VoteResponse(BaseModel):
    success: bool
    message: str
    match_id: int | None = None
    balance: int


class MVPResultResponse(BaseModel):
    match_id: int
    open: bool
    mvp_gladiator_id: int | None = None
    mvp_name: str | None = None
    total_votes: int = 0
    votes_by_gladiator: dict[int, int] = Field(default_factory=dict)
    random_pick: bool = False
    closes_in_ms: int | None = None


# --- Wallet & history ---

class TransactionSchema(BaseModel):
    kind: str
    amount: int
    balance_after: int
    reason: str = ""
    timestamp: float


class PlayerStatsSchema(BaseModel):
    address: str
    predictions: int = 0
    correct: int = 0
    wagered: int = 0
    winnings: int = 0
    win_rate: float = 0.0


class WalletResponse(BaseModel):
    address: str
    balance: int
    stats: PlayerStatsSchema | None = None
    transactions: list[TransactionSchema] = Field(default_factory=list)


class HistoryResponse(BaseModel):
    matches: list[MatchResultSchema]


class LeaderboardResponse(BaseModel):
    min_predictions: int
    players: list[PlayerStatsSchema]


# --- Control & config ---

class ControlResponse(BaseModel):
    status: str
    message: str
    tick: int


class ArenaConfigResponse(BaseModel):
    world_width: int
    world_height: int
    rng_seed: int | None = None
    tick_ms: int
    match_duration_s: int
    reset_delay_s: int
    agent_count: int
    damage_model: str
    attack_range: float
    attack_cooldown_ms: int
    powerup_target_radius: float
    prediction_payout: int
    mvp_vote_cost: int
    mvp_voting_ms: int
    free_token_grant: int
    tick_rate: float
