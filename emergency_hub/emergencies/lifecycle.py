"""
Emergency status state machine.

Reports only move forward along

    reported -> acknowledged -> responding -> resolved -> closed

and every action is guarded by the set of statuses it may start from.
Each action writes its own audit stamp column exactly once, so stamps are
only ever added.
"""
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from .models import EmergencyStatus
from emergency_hub.shared.errors import InvalidTransition, ValidationError

STATUS_ORDER = (
    EmergencyStatus.REPORTED,
    EmergencyStatus.ACKNOWLEDGED,
    EmergencyStatus.RESPONDING,
    EmergencyStatus.RESOLVED,
    EmergencyStatus.CLOSED,
)

ACTIVE_STATUSES = frozenset({
    EmergencyStatus.REPORTED,
    EmergencyStatus.ACKNOWLEDGED,
    EmergencyStatus.RESPONDING,
})


@dataclass(frozen=True)
class Transition:
    action: str
    target: EmergencyStatus
    allowed_from: FrozenSet[EmergencyStatus]
    stamp_column: str
    # Past-tense name used in notifications and note records
    past_tense: str
    completed_at_column: Optional[str] = None


TRANSITIONS: Dict[str, Transition] = {
    "acknowledge": Transition(
        action="acknowledge",
        target=EmergencyStatus.ACKNOWLEDGED,
        allowed_from=frozenset({EmergencyStatus.REPORTED}),
        stamp_column="acknowledged_by",
        past_tense="acknowledged",
    ),
    "respond": Transition(
        action="respond",
        target=EmergencyStatus.RESPONDING,
        allowed_from=frozenset({EmergencyStatus.REPORTED, EmergencyStatus.ACKNOWLEDGED}),
        stamp_column="responded_by",
        past_tense="responded",
    ),
    "resolve": Transition(
        action="resolve",
        target=EmergencyStatus.RESOLVED,
        allowed_from=frozenset({EmergencyStatus.ACKNOWLEDGED, EmergencyStatus.RESPONDING}),
        stamp_column="resolved_by",
        past_tense="resolved",
        completed_at_column="resolved_at",
    ),
    "close": Transition(
        action="close",
        target=EmergencyStatus.CLOSED,
        allowed_from=frozenset({EmergencyStatus.RESOLVED}),
        stamp_column="closed_by",
        past_tense="closed",
        completed_at_column="closed_at",
    ),
}


def get_transition(action: str) -> Transition:
    try:
        return TRANSITIONS[action]
    except KeyError:
        raise ValidationError(f"Unknown action: {action}")


def rank(status: EmergencyStatus) -> int:
    return STATUS_ORDER.index(EmergencyStatus(status))


def check_transition(action: str, current: EmergencyStatus) -> Transition:
    """Return the transition for action, or raise InvalidTransition from current."""
    transition = get_transition(action)
    current = EmergencyStatus(current)
    if current not in transition.allowed_from:
        allowed = sorted((s.value for s in transition.allowed_from), key=lambda s: rank(EmergencyStatus(s)))
        raise InvalidTransition(action, current.value, allowed)
    return transition


def available_actions(current: EmergencyStatus):
    """Actions an operator may take on a report in the given status."""
    current = EmergencyStatus(current)
    return [name for name, t in TRANSITIONS.items() if current in t.allowed_from]
