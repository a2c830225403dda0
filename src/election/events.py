"""Notification records emitted by state-changing ledger operations."""

import json
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict


@dataclass(frozen=True)
class LedgerEvent:
    """Base notification. Subclasses add their fields."""

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_payload(self) -> str:
        return json.dumps(asdict(self), sort_keys=True)

    def to_record(self) -> Dict[str, Any]:
        return {"event_type": self.event_type, **asdict(self)}


@dataclass(frozen=True)
class VoterRegistered(LedgerEvent):
    voter: str


@dataclass(frozen=True)
class CandidateAdded(LedgerEvent):
    position: str
    name: str


@dataclass(frozen=True)
class VoteCasted(LedgerEvent):
    voter: str
    position: str
    candidate_name: str


@dataclass(frozen=True)
class VotingStarted(LedgerEvent):
    pass


@dataclass(frozen=True)
class VotingEnded(LedgerEvent):
    pass


# Not emitted by any ledger operation; kept for an external finalization step.
@dataclass(frozen=True)
class WinnerDeclared(LedgerEvent):
    position: str
    winner_name: str
    vote_count: int


EVENT_TYPES = {
    cls.__name__: cls
    for cls in (
        VoterRegistered,
        CandidateAdded,
        VoteCasted,
        VotingStarted,
        VotingEnded,
        WinnerDeclared,
    )
}


def event_from_payload(event_type: str, payload: str) -> LedgerEvent:
    """Rebuild a notification from its stored type name and JSON payload."""
    try:
        cls = EVENT_TYPES[event_type]
    except KeyError:
        raise ValueError(f"Unknown event type: {event_type}")
    data = json.loads(payload)
    return cls(**{f.name: data[f.name] for f in fields(cls)})
