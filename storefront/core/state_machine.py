from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional


class InvalidTransition(ValueError):
    pass


HistoryEntry = Dict[str, Any]


class StateMachine:
    """
    Small, generic state machine with:
      - allowed transitions map
      - history recording (with metadata)

    Usage:
      sm = StateMachine(state="idle", allowed_transitions=CHECKOUT_TRANSITIONS)
      sm.apply("submitting")
      sm.state  # "submitting"
    """

    def __init__(self, state: str, allowed_transitions: Dict[str, List[str]],
                 history: Optional[List[HistoryEntry]] = None):
        self.state = state
        self.allowed_transitions = allowed_transitions
        self.history: List[HistoryEntry] = list(history or [])

    def can_transition(self, to_state: str) -> bool:
        return to_state in self.allowed_transitions.get(self.state, [])

    def is_terminal(self) -> bool:
        return not self.allowed_transitions.get(self.state)

    def apply(self, to_state: str, meta: Optional[Dict[str, Any]] = None) -> HistoryEntry:
        """Move to `to_state`. Raises InvalidTransition when the map does not allow it."""
        if not self.can_transition(to_state):
            raise InvalidTransition(f"Invalid transition: {self.state} -> {to_state}")
        entry: HistoryEntry = {
            "from": self.state,
            "to": to_state,
            "at": datetime.utcnow().isoformat(sep=" "),
            "meta": dict(meta or {}),
        }
        self.state = to_state
        self.history.append(entry)
        return entry
