"""Arena configuration with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ArenaConfig:
    """Immutable configuration for the arena simulation."""

    # World
    world_width: int = 800
    world_height: int = 600
    rng_seed: int | None = None            # None = fresh entropy per process

    # Timing
    tick_ms: int = 50                      # 20 ticks per second
    match_duration_s: int = 60
    countdown_interval_ms: int = 1000
    reset_delay_s: int = 5

    # Agents
    agent_count: int = 4
    spawn_zone_margin: int = 80
    spawn_zone_size: int = 100
    agent_half_size: int = 16
    strength_range: tuple[float, float] = (5.0, 15.0)
    speed_range: tuple[float, float] = (100.0, 200.0)
    defense_range: tuple[float, float] = (1.0, 5.0)
    intelligence_range: tuple[float, float] = (1.0, 3.0)
    aggression_range: tuple[float, float] = (0.3, 0.9)
    luck_range: tuple[float, float] = (0.0, 0.2)
    base_health: int = 100
    health_per_defense: int = 20

    # FSM
    evade_health_ratio: float = 0.3
    attack_range: float = 120.0
    seek_idle_chance: float = 0.05         # anti-stall drop out of SEEK
    reengage_chance: float = 0.02
    idle_turn_chance: float = 0.05
    idle_speed_factor: float = 0.3
    evade_probe_factor: float = 1.5        # probe distance = speed * factor
    evade_speed_factor: float = 1.2
    evade_probe_count: int = 8
    attack_cooldown_ms: int = 1000
    attack_recovery_delay_ms: int = 200
    attack_recovery_ms: int = 250
    recovery_speed_factor: float = 0.4
    knockout_grace_ms: int = 1000

    # Combat
    damage_model: str = "flat"             # "flat" | "proportional"
    dodge_factor: float = 0.5
    crit_factor: float = 3.0
    crit_multiplier: float = 2.0
    min_damage: int = 10
    defense_reduction_divisor: float = 12.0
    max_defense_reduction: float = 0.8

    # Power-ups
    powerup_first_delay_ms: int = 5000
    powerup_interval_ms: tuple[int, int] = (8000, 12000)
    powerup_spawn_margin: int = 50
    powerup_lifespan_ms: int = 10000
    powerup_half_size: int = 12
    shield_duration_ms: int = 8000
    shield_multiplier: float = 0.5
    trap_duration_ms: int = 3000
    trap_multiplier: float = 0.5
    trap_damage: int = 10
    chaos_duration_ms: tuple[int, int] = (3000, 10000)
    chaos_multiplier: tuple[float, float] = (0.3, 2.0)
    chaos_defense_multiplier: float = 10.0
    chaos_heal: int = 50
    chaos_damage: int = 30
    confusion_interval_ms: int = 500

    # Hazards
    hazard_first_delay_ms: int = 15000
    hazard_interval_ms: tuple[int, int] = (15000, 25000)
    spike_wall_speed: float = 200.0
    spike_wall_damage: int = 1000          # always lethal
    spike_wall_half_extents: tuple[int, int] = (8, 80)
    fireball_speed: tuple[float, float] = (150.0, 250.0)
    fireball_drift: float = 50.0
    fireball_gravity: float = 200.0
    fireball_damage: tuple[int, int] = (25, 39)
    fireball_lifespan_ms: int = 6000
    fireball_half_size: int = 16
    hazard_bounds_padding: int = 100

    # Targeting
    powerup_target_radius: float = 300.0

    # Economy (predictions / MVP voting)
    prediction_payout: int = 2
    mvp_vote_cost: int = 1
    mvp_voting_ms: int = 15000
    mvp_after_vote_ms: int = 5000
    free_token_grant: int = 100
    leaderboard_min_predictions: int = 3

    # Logging
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.tick_ms <= 0:
            raise ValueError(f"tick_ms must be positive, got {self.tick_ms}")
        if self.agent_count < 1:
            raise ValueError(f"agent_count must be at least 1, got {self.agent_count}")
        if self.damage_model not in ("flat", "proportional"):
            raise ValueError(f"unknown damage_model {self.damage_model!r}")
        for name in ("powerup_interval_ms", "hazard_interval_ms", "chaos_duration_ms", "fireball_damage"):
            low, high = getattr(self, name)
            if low > high:
                raise ValueError(f"{name} range is inverted: {low} > {high}")

    @property
    def match_duration_ms(self) -> int:
        return self.match_duration_s * 1000
