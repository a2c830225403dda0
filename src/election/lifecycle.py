"""
Voting lifecycle: not started -> active -> ended.

Only the administrator moves the phase. ``start_voting`` refuses only while
voting is active, so an ended election can be started again; the stored
ballots and tallies are kept when that happens.
"""

import logging
from typing import Tuple

from data.database import LedgerDatabase

from .errors import (
    OnlyAdminCanPerformThisAction,
    VotingHasAlreadyStarted,
    VotingHasEnded,
    VotingHasNotYetStarted,
)
from .events import VotingEnded, VotingStarted
from .models import Phase

logger = logging.getLogger(__name__)


def read_state(cursor) -> Tuple[str, bool, bool]:
    """Return (admin, started, ended) as seen inside the current transaction."""
    row = cursor.execute("SELECT admin, started, ended FROM election_state").fetchone()
    if row is None:
        raise RuntimeError("Election state has not been initialized")
    return row[0], bool(row[1]), bool(row[2])


def require_admin(cursor, caller: str) -> None:
    admin, _, _ = read_state(cursor)
    if caller != admin:
        raise OnlyAdminCanPerformThisAction()


class LifecycleController:
    """Tracks the voting phase and gates ballot casting on it."""

    def __init__(self, db: LedgerDatabase):
        self.db = db

    def start_voting(self, cursor, caller: str) -> VotingStarted:
        require_admin(cursor, caller)
        _, started, ended = read_state(cursor)
        if started:
            raise VotingHasAlreadyStarted()

        if ended:
            logger.warning("Restarting voting after it had ended")
        cursor.execute("UPDATE election_state SET started = TRUE, ended = FALSE")
        return VotingStarted()

    def end_voting(self, cursor, caller: str) -> VotingEnded:
        require_admin(cursor, caller)
        _, started, _ = read_state(cursor)
        if not started:
            raise VotingHasNotYetStarted()

        cursor.execute("UPDATE election_state SET started = FALSE, ended = TRUE")
        return VotingEnded()

    def require_active(self, cursor) -> None:
        """Gate for ballot casting: voting must be started and not ended."""
        _, started, ended = read_state(cursor)
        if not started:
            raise VotingHasNotYetStarted()
        if ended:
            raise VotingHasEnded()

    def get_phase(self) -> Phase:
        row = self.db.query_one("SELECT started, ended FROM election_state")
        if row is None:
            return Phase.NOT_STARTED
        return Phase.from_flags(bool(row[0]), bool(row[1]))
