"""
Failures raised by the election ledger.

Every named failure belongs to one category. A failure aborts the whole
operation: nothing it would have written is committed.
"""

from typing import Optional


class LedgerError(Exception):
    """Base class for a rejected ledger operation."""

    category = "LedgerError"
    default_message = "Operation rejected"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def code(self) -> str:
        return type(self).__name__


class LedgerConfigurationError(Exception):
    """The ledger could not be bootstrapped with the given administrator."""


# Categories


class Unauthorized(LedgerError):
    category = "Unauthorized"


class PhaseViolation(LedgerError):
    category = "PhaseViolation"


class NotRegistered(LedgerError):
    category = "NotRegistered"


class DuplicateRegistration(LedgerError):
    category = "DuplicateRegistration"


class DuplicateCandidate(LedgerError):
    category = "DuplicateCandidate"


class DuplicateVote(LedgerError):
    category = "DuplicateVote"


class InvalidIndex(LedgerError):
    category = "InvalidIndex"


# Named failures


class OnlyAdminCanPerformThisAction(Unauthorized):
    default_message = "Only the administrator can perform this action"


class VotingHasAlreadyStarted(PhaseViolation):
    default_message = "Voting has already started"


class VotingHasNotYetStarted(PhaseViolation):
    default_message = "Voting has not yet started"


class VotingHasEnded(PhaseViolation):
    default_message = "Voting has ended"


class YouMustBeRegisteredToVote(NotRegistered):
    default_message = "You must be registered to vote"


class RegistrationNumberAlreadyUsed(DuplicateRegistration):
    default_message = "Registration number is already used"


class VoterHasAlreadyRegistered(DuplicateRegistration):
    default_message = "Voter has already registered"


class CandidateAlreadyExistsForThisPosition(DuplicateCandidate):
    default_message = "Candidate already exists for this position"


class YouHaveAlreadyVotedForThisPosition(DuplicateVote):
    default_message = "You have already voted for this position"


class InvalidCandidateIndex(InvalidIndex):
    default_message = "Invalid candidate index"
