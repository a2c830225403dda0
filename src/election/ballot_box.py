from data.database import LedgerDatabase

from .errors import (
    InvalidCandidateIndex,
    YouHaveAlreadyVotedForThisPosition,
    YouMustBeRegisteredToVote,
)
from .events import VoteCasted
from .lifecycle import LifecycleController


class BallotBox:
    """
    Records one ballot per (voter, position) and keeps candidate tallies.
    """

    def __init__(self, db: LedgerDatabase, lifecycle: LifecycleController):
        self.db = db
        self.lifecycle = lifecycle

    def vote(self, cursor, caller: str, position: str, candidate_index: int) -> VoteCasted:
        """
        Cast the caller's ballot for a candidate of a position.

        Checks run in this order, and the first one that fails is reported:
        registration, active phase, already voted for the position, index.

        Args:
            cursor: Cursor with an open write transaction
            caller: Identity of the voter
            position: Position being voted on
            candidate_index: Index of the candidate in the position's list

        Returns:
            The VoteCasted notification
        """
        voter = cursor.execute(
            "SELECT reg_number FROM voters WHERE identity = ?", [caller]
        ).fetchone()
        if voter is None or voter[0] == "":
            raise YouMustBeRegisteredToVote()

        self.lifecycle.require_active(cursor)

        already_voted = cursor.execute(
            "SELECT COUNT(*) FROM voted_positions WHERE identity = ? AND position = ?",
            [caller, position],
        ).fetchone()[0]
        if already_voted:
            raise YouHaveAlreadyVotedForThisPosition()

        candidate_count = cursor.execute(
            "SELECT COUNT(*) FROM candidates WHERE position = ?", [position]
        ).fetchone()[0]
        if candidate_index < 0 or candidate_index >= candidate_count:
            raise InvalidCandidateIndex(
                f"Invalid candidate index {candidate_index} for '{position}' "
                f"({candidate_count} candidates)"
            )

        candidate_name = cursor.execute(
            "SELECT name FROM candidates WHERE position = ? AND candidate_index = ?",
            [position, candidate_index],
        ).fetchone()[0]
        cursor.execute(
            """
            UPDATE candidates SET vote_count = vote_count + 1
            WHERE position = ? AND candidate_index = ?
            """,
            [position, candidate_index],
        )
        cursor.execute(
            "INSERT INTO voted_positions VALUES (?, ?)", [caller, position]
        )
        cursor.execute(
            "UPDATE voters SET has_voted = TRUE WHERE identity = ?", [caller]
        )
        return VoteCasted(voter=caller, position=position, candidate_name=candidate_name)
