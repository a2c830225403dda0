import logging

from data.database import BIGINT_MAX, LedgerDatabase

from .errors import (
    CandidateAlreadyExistsForThisPosition,
    RegistrationNumberAlreadyUsed,
    VoterHasAlreadyRegistered,
)
from .events import CandidateAdded, VoterRegistered
from .lifecycle import require_admin

logger = logging.getLogger(__name__)


def check_year_of_study(year_of_study: int) -> int:
    """Reject a year of study the ledger cannot store."""
    if not 0 <= int(year_of_study) <= BIGINT_MAX:
        raise ValueError(f"Year of study out of range: {year_of_study}")
    return int(year_of_study)


class IdentityRegistry:
    """
    Voter self-registration and administrator-issued candidate registration.

    A voter is keyed by the calling identity and counts as registered once
    its record holds a non-empty registration number. Voter registration
    numbers are unique across all voters; candidate registration numbers are
    unique only within their position.
    """

    def __init__(self, db: LedgerDatabase):
        self.db = db

    def register_voter(
        self,
        cursor,
        caller: str,
        name: str,
        department: str,
        reg_number: str,
        year_of_study: int,
    ) -> VoterRegistered:
        """
        Store a voter record for the calling identity.

        Allowed for any caller in any phase.

        Raises:
            RegistrationNumberAlreadyUsed: another voter already holds reg_number
            VoterHasAlreadyRegistered: the caller already has a voter record
        """
        year_of_study = check_year_of_study(year_of_study)

        used = cursor.execute(
            "SELECT COUNT(*) FROM used_reg_numbers WHERE reg_number = ?", [reg_number]
        ).fetchone()[0]
        if used:
            raise RegistrationNumberAlreadyUsed()

        existing = cursor.execute(
            "SELECT reg_number FROM voters WHERE identity = ?", [caller]
        ).fetchone()
        if existing is not None and existing[0] != "":
            raise VoterHasAlreadyRegistered()

        # A record with an empty registration number does not count as registered
        cursor.execute("DELETE FROM voters WHERE identity = ?", [caller])
        cursor.execute(
            """
            INSERT INTO voters
                (identity, name, department, reg_number, year_of_study, has_voted)
            VALUES (?, ?, ?, ?, ?, FALSE)
            """,
            [caller, name, department, reg_number, year_of_study],
        )
        cursor.execute("INSERT INTO used_reg_numbers VALUES (?)", [reg_number])
        return VoterRegistered(voter=caller)

    def add_candidate(
        self,
        cursor,
        caller: str,
        name: str,
        department: str,
        reg_number: str,
        year_of_study: int,
        position: str,
        img_hash: str,
    ) -> CandidateAdded:
        """
        Append a candidate to a position's list. Administrator only.

        Not gated on the voting phase: candidates may join before, during or
        after voting and always start with zero votes.

        Raises:
            OnlyAdminCanPerformThisAction: caller is not the administrator
            CandidateAlreadyExistsForThisPosition: reg_number already stands
                for this position
        """
        year_of_study = check_year_of_study(year_of_study)
        require_admin(cursor, caller)

        rows = cursor.execute(
            "SELECT reg_number FROM candidates WHERE position = ? ORDER BY candidate_index",
            [position],
        ).fetchall()
        for (existing_reg_number,) in rows:
            if existing_reg_number == reg_number:
                raise CandidateAlreadyExistsForThisPosition()

        if not rows:
            next_order = cursor.execute(
                "SELECT COALESCE(MAX(position_order) + 1, 0) FROM positions"
            ).fetchone()[0]
            cursor.execute(
                "INSERT INTO positions VALUES (?, ?)", [position, int(next_order)]
            )
            logger.info(f"Position '{position}' opened")

        cursor.execute(
            """
            INSERT INTO candidates
                (position, candidate_index, name, department, reg_number,
                 year_of_study, img_hash, vote_count)
            VALUES (?, ?, ?, ?, ?, ?, ?, 0)
            """,
            [
                position,
                len(rows),
                name,
                department,
                reg_number,
                year_of_study,
                img_hash,
            ],
        )
        return CandidateAdded(position=position, name=name)
