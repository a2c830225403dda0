from dataclasses import dataclass
from enum import Enum


class Phase(str, Enum):
    """Voting lifecycle stage, derived from the stored started/ended flags."""

    NOT_STARTED = "not_started"
    ACTIVE = "active"
    ENDED = "ended"

    @classmethod
    def from_flags(cls, started: bool, ended: bool) -> "Phase":
        if started:
            return cls.ACTIVE
        if ended:
            return cls.ENDED
        return cls.NOT_STARTED


@dataclass
class Voter:
    """Public view of a voter record. The zero value stands for "unregistered"."""

    name: str = ""
    department: str = ""
    reg_number: str = ""
    year_of_study: int = 0
    has_voted: bool = False

    @property
    def is_registered(self) -> bool:
        return self.reg_number != ""


@dataclass
class Candidate:
    """A candidate standing for one position."""

    name: str
    department: str
    reg_number: str
    year_of_study: int
    position: str
    img_hash: str
    vote_count: int = 0

    @classmethod
    def from_row(cls, row) -> "Candidate":
        # DataFrame rows carry numpy scalars
        return cls(
            name=str(row["name"]),
            department=str(row["department"]),
            reg_number=str(row["reg_number"]),
            year_of_study=int(row["year_of_study"]),
            position=str(row["position"]),
            img_hash=str(row["img_hash"]),
            vote_count=int(row["vote_count"]),
        )
