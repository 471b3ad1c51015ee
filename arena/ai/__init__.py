"""AI layer: gladiator state machine and per-state behaviour."""

from arena.ai.brain import AgentBrain
from arena.ai.states import AIContext, Intent, STATE_HANDLERS, choose_state

__all__ = ["AIContext", "AgentBrain", "Intent", "STATE_HANDLERS", "choose_state"]
