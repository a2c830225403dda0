"""
Read-only views over the ledger.

Nothing here mutates state or checks the caller; every view may be queried
in any phase, including before voting starts.
"""

from typing import Any, Dict, List, Tuple

import numpy as np
import pandas as pd

from data.database import LedgerDatabase

from .errors import InvalidCandidateIndex
from .events import LedgerEvent, event_from_payload
from .models import Candidate, Voter


class TallyReader:
    """Computes winners and exposes positions, candidates and voters."""

    def __init__(self, db: LedgerDatabase):
        self.db = db

    def _candidate_frame(self, position: str) -> pd.DataFrame:
        return self.db.query(
            """
            SELECT position, candidate_index, name, department, reg_number,
                   year_of_study, img_hash, vote_count
            FROM candidates
            WHERE position = ?
            ORDER BY candidate_index
            """,
            [position],
        )

    @staticmethod
    def _leading_index(candidates: pd.DataFrame) -> int:
        # argmax returns the first occurrence of the maximum
        return int(np.argmax(candidates["vote_count"].to_numpy()))

    def get_winner(self, position: str) -> Tuple[str, int]:
        """
        Return (name, vote count) of the leading candidate for a position.

        Ties go to the earliest-added candidate. A position without
        candidates yields ("", 0).
        """
        candidates = self._candidate_frame(position)
        if candidates.empty:
            return "", 0

        winner = candidates.iloc[self._leading_index(candidates)]
        return str(winner["name"]), int(winner["vote_count"])

    def get_all_positions(self) -> List[str]:
        positions = self.db.query("SELECT position FROM positions ORDER BY position_order")
        return positions["position"].tolist()

    def get_candidates(self, position: str) -> List[Candidate]:
        candidates = self._candidate_frame(position)
        return [Candidate.from_row(row) for _, row in candidates.iterrows()]

    def get_voter(self, identity: str) -> Voter:
        """Return the voter record, or the zero-value record if unregistered."""
        row = self.db.query_one(
            """
            SELECT name, department, reg_number, year_of_study, has_voted
            FROM voters WHERE identity = ?
            """,
            [identity],
        )
        if row is None:
            return Voter()
        return Voter(
            name=row[0],
            department=row[1],
            reg_number=row[2],
            year_of_study=int(row[3]),
            has_voted=bool(row[4]),
        )

    def has_voted_for(self, identity: str, position: str) -> bool:
        row = self.db.query_one(
            "SELECT COUNT(*) FROM voted_positions WHERE identity = ? AND position = ?",
            [identity, position],
        )
        return row[0] > 0

    def get_vote_count(self, position: str, candidate_index: int) -> int:
        """
        Return the votes of one candidate.

        Raises:
            InvalidCandidateIndex: the index is outside the position's list
        """
        row = self.db.query_one(
            "SELECT vote_count FROM candidates WHERE position = ? AND candidate_index = ?",
            [position, candidate_index],
        )
        if row is None:
            raise InvalidCandidateIndex(
                f"Invalid candidate index {candidate_index} for '{position}'"
            )
        return int(row[0])

    def get_admin(self) -> str:
        row = self.db.query_one("SELECT admin FROM election_state")
        return row[0] if row else ""

    def get_results(self) -> List[Dict[str, Any]]:
        """Summarize every live position: candidates, total votes and winner."""
        results = []
        for position in self.get_all_positions():
            frame = self._candidate_frame(position)
            candidates = [Candidate.from_row(row) for _, row in frame.iterrows()]
            winner_index = self._leading_index(frame)
            results.append(
                {
                    "position": position,
                    "total_votes": sum(c.vote_count for c in candidates),
                    "winner_index": winner_index,
                    "winner": candidates[winner_index].name,
                    "winner_votes": candidates[winner_index].vote_count,
                    "candidates": [
                        {
                            "index": index,
                            "name": c.name,
                            "reg_number": c.reg_number,
                            "vote_count": c.vote_count,
                        }
                        for index, c in enumerate(candidates)
                    ],
                }
            )
        return results

    def get_events(self) -> List[Tuple[int, LedgerEvent]]:
        """Return the notification history as (event id, event) in emission order."""
        events = self.db.query(
            "SELECT event_id, event_type, payload FROM events ORDER BY event_id"
        )
        return [
            (int(row["event_id"]), event_from_payload(row["event_type"], row["payload"]))
            for _, row in events.iterrows()
        ]
