import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from data.database import LedgerDatabase

from .ballot_box import BallotBox
from .errors import LedgerConfigurationError, LedgerError
from .events import LedgerEvent
from .lifecycle import LifecycleController
from .models import Candidate, Phase, Voter
from .registry import IdentityRegistry
from .tally import TallyReader

logger = logging.getLogger(__name__)

EventListener = Callable[[LedgerEvent], None]


class ElectionLedger:
    """
    The election ledger: voter and candidate registry, voting lifecycle,
    ballot box and tally, over one DuckDB store.

    Every write runs as one serialized transaction. It either commits fully
    and emits its notification, or raises a LedgerError and leaves no trace.
    The caller identity is passed explicitly to each write.
    """

    def __init__(self, admin: Optional[str] = None, db_path: Optional[str] = None):
        """
        Open a ledger.

        Args:
            admin: Administrator identity. Required for a new store; for an
                existing store it must match the stored administrator or be None.
            db_path: Path to DuckDB file. If None, the ledger lives in memory.
        """
        self.db = LedgerDatabase(db_path)
        try:
            self._bootstrap(admin)
        except Exception:
            self.db.close()
            raise

        self.lifecycle = LifecycleController(self.db)
        self.registry = IdentityRegistry(self.db)
        self.ballot_box = BallotBox(self.db, self.lifecycle)
        self.tally = TallyReader(self.db)
        self._listeners: List[EventListener] = []

    def _bootstrap(self, admin: Optional[str]):
        with self.db.transaction() as cursor:
            row = cursor.execute("SELECT admin FROM election_state").fetchone()
            if row is None:
                if not admin:
                    raise LedgerConfigurationError(
                        "An administrator identity is required to create a ledger"
                    )
                cursor.execute(
                    "INSERT INTO election_state VALUES (?, FALSE, FALSE)", [admin]
                )
                logger.info(f"Created election ledger administered by {admin}")
            elif admin and admin != row[0]:
                raise LedgerConfigurationError(
                    f"Ledger at {self.db.db_path} is administered by {row[0]}, not {admin}"
                )
            else:
                logger.info(f"Opened election ledger administered by {row[0]}")

    def subscribe(self, listener: EventListener):
        """Register a callback invoked with each notification after it commits."""
        self._listeners.append(listener)

    def _execute(self, operation: str, caller: str, action) -> LedgerEvent:
        try:
            with self.db.transaction() as cursor:
                event = action(cursor)
                next_id = cursor.execute(
                    "SELECT COALESCE(MAX(event_id) + 1, 1) FROM events"
                ).fetchone()[0]
                cursor.execute(
                    "INSERT INTO events VALUES (?, ?, ?)",
                    [int(next_id), event.event_type, event.to_payload()],
                )
        except LedgerError as e:
            logger.warning(f"{operation} by {caller} rejected: {e.code}")
            raise

        logger.info(f"{operation} by {caller}: {event.to_record()}")
        self._publish(event)
        return event

    def _publish(self, event: LedgerEvent):
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Event listener failed on {event.event_type}: {e}")

    # Identity registry

    def register_voter(
        self,
        caller: str,
        name: str,
        department: str,
        reg_number: str,
        year_of_study: int,
    ) -> LedgerEvent:
        return self._execute(
            "register_voter",
            caller,
            lambda cursor: self.registry.register_voter(
                cursor, caller, name, department, reg_number, year_of_study
            ),
        )

    def add_candidate(
        self,
        caller: str,
        name: str,
        department: str,
        reg_number: str,
        year_of_study: int,
        position: str,
        img_hash: str,
    ) -> LedgerEvent:
        return self._execute(
            "add_candidate",
            caller,
            lambda cursor: self.registry.add_candidate(
                cursor,
                caller,
                name,
                department,
                reg_number,
                year_of_study,
                position,
                img_hash,
            ),
        )

    # Lifecycle

    def start_voting(self, caller: str) -> LedgerEvent:
        return self._execute(
            "start_voting",
            caller,
            lambda cursor: self.lifecycle.start_voting(cursor, caller),
        )

    def end_voting(self, caller: str) -> LedgerEvent:
        return self._execute(
            "end_voting",
            caller,
            lambda cursor: self.lifecycle.end_voting(cursor, caller),
        )

    def get_phase(self) -> Phase:
        return self.lifecycle.get_phase()

    # Ballot box

    def vote(self, caller: str, position: str, candidate_index: int) -> LedgerEvent:
        return self._execute(
            "vote",
            caller,
            lambda cursor: self.ballot_box.vote(
                cursor, caller, position, candidate_index
            ),
        )

    # Tally

    def get_winner(self, position: str) -> Tuple[str, int]:
        return self.tally.get_winner(position)

    def get_all_positions(self) -> List[str]:
        return self.tally.get_all_positions()

    def get_candidates(self, position: str) -> List[Candidate]:
        return self.tally.get_candidates(position)

    def get_voter(self, identity: str) -> Voter:
        return self.tally.get_voter(identity)

    def has_voted_for(self, identity: str, position: str) -> bool:
        return self.tally.has_voted_for(identity, position)

    def get_vote_count(self, position: str, candidate_index: int) -> int:
        return self.tally.get_vote_count(position, candidate_index)

    def get_admin(self) -> str:
        return self.tally.get_admin()

    def get_results(self) -> List[Dict[str, Any]]:
        return self.tally.get_results()

    def get_events(self) -> List[Tuple[int, LedgerEvent]]:
        return self.tally.get_events()

    def close(self):
        self.db.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
