"""
Election ledger for a single administrator-run election.

The ledger is composed of four parts that act in sequence over an election:
- IdentityRegistry: voter self-registration and admin-issued candidates
- LifecycleController: not started -> active -> ended, gating ballots
- BallotBox: one ballot per voter per position
- TallyReader: winners and read-only views

ElectionLedger ties them to one DuckDB store and runs each write atomically.
"""

from .errors import LedgerConfigurationError, LedgerError
from .ledger import ElectionLedger
from .models import Candidate, Phase, Voter

__all__ = [
    "ElectionLedger",
    "Candidate",
    "Voter",
    "Phase",
    "LedgerError",
    "LedgerConfigurationError",
]
