"""
Identity registry unit tests.

Voter self-registration and administrator-issued candidate registration.
"""

import pytest

from election.errors import (
    CandidateAlreadyExistsForThisPosition,
    DuplicateRegistration,
    OnlyAdminCanPerformThisAction,
    RegistrationNumberAlreadyUsed,
    Unauthorized,
    VoterHasAlreadyRegistered,
    YouMustBeRegisteredToVote,
)
from election.events import CandidateAdded, VoterRegistered


@pytest.mark.unit
def test_register_voter_stores_record(ledger):
    event = ledger.register_voter("0xV1", "Dana", "Maths", "S1", 2)

    assert event == VoterRegistered(voter="0xV1")
    voter = ledger.get_voter("0xV1")
    assert voter.name == "Dana"
    assert voter.department == "Maths"
    assert voter.reg_number == "S1"
    assert voter.year_of_study == 2
    assert voter.has_voted is False
    assert voter.is_registered


@pytest.mark.unit
def test_register_voter_duplicate_reg_number(ledger):
    ledger.register_voter("0xV1", "Dana", "Maths", "S9", 2)

    with pytest.raises(RegistrationNumberAlreadyUsed):
        ledger.register_voter("0xV2", "Eli", "Art", "S9", 1)

    # The second identity was not registered
    assert not ledger.get_voter("0xV2").is_registered


@pytest.mark.unit
def test_register_voter_same_identity_twice(ledger):
    ledger.register_voter("0xV1", "Dana", "Maths", "S1", 2)

    with pytest.raises(VoterHasAlreadyRegistered):
        ledger.register_voter("0xV1", "Dana", "Maths", "S2", 2)

    # The new registration number stays free
    ledger.register_voter("0xV2", "Eli", "Art", "S2", 1)
    assert ledger.get_voter("0xV2").reg_number == "S2"


@pytest.mark.unit
def test_reg_number_check_comes_before_identity_check(ledger):
    ledger.register_voter("0xV1", "Dana", "Maths", "S1", 2)

    with pytest.raises(RegistrationNumberAlreadyUsed):
        ledger.register_voter("0xV1", "Dana", "Maths", "S1", 2)


@pytest.mark.unit
def test_duplicate_registrations_share_category(ledger):
    ledger.register_voter("0xV1", "Dana", "Maths", "S1", 2)

    with pytest.raises(DuplicateRegistration) as exc_info:
        ledger.register_voter("0xV1", "Dana", "Maths", "S3", 2)
    assert exc_info.value.category == "DuplicateRegistration"
    assert exc_info.value.code == "VoterHasAlreadyRegistered"


@pytest.mark.unit
def test_admin_can_register_as_voter(ledger, admin):
    ledger.register_voter(admin, "Admin", "Office", "ADM", 0)
    assert ledger.get_voter(admin).is_registered


@pytest.mark.unit
def test_add_candidate(ledger, admin):
    event = ledger.add_candidate(admin, "Alice", "Physics", "S-A", 3, "President", "QmA")

    assert event == CandidateAdded(position="President", name="Alice")
    candidates = ledger.get_candidates("President")
    assert len(candidates) == 1
    alice = candidates[0]
    assert alice.name == "Alice"
    assert alice.position == "President"
    assert alice.img_hash == "QmA"
    assert alice.vote_count == 0


@pytest.mark.unit
def test_add_candidate_requires_admin(ledger):
    with pytest.raises(OnlyAdminCanPerformThisAction):
        ledger.add_candidate("0xV1", "Alice", "Physics", "S-A", 3, "President", "QmA")

    assert ledger.get_candidates("President") == []
    assert ledger.get_all_positions() == []


@pytest.mark.unit
def test_unauthorized_is_raised_for_registered_voter(ledger):
    ledger.register_voter("0xV1", "Dana", "Maths", "S1", 2)

    with pytest.raises(Unauthorized):
        ledger.add_candidate("0xV1", "Dana", "Maths", "S1", 2, "President", "")


@pytest.mark.unit
def test_candidate_reg_number_unique_within_position(ledger, admin):
    ledger.add_candidate(admin, "Alice", "Physics", "S-A", 3, "President", "QmA")

    with pytest.raises(CandidateAlreadyExistsForThisPosition):
        ledger.add_candidate(admin, "Alice 2", "Physics", "S-A", 3, "President", "QmA")

    assert len(ledger.get_candidates("President")) == 1


@pytest.mark.unit
@pytest.mark.invariant
def test_candidate_reg_number_may_recur_across_positions(ledger, admin):
    ledger.add_candidate(admin, "Alice", "Physics", "S-A", 3, "President", "QmA")
    ledger.add_candidate(admin, "Alice", "Physics", "S-A", 3, "Treasurer", "QmA")

    assert [c.reg_number for c in ledger.get_candidates("President")] == ["S-A"]
    assert [c.reg_number for c in ledger.get_candidates("Treasurer")] == ["S-A"]


@pytest.mark.unit
def test_candidates_keep_addition_order(ledger, admin):
    for name, reg in [("Alice", "S-A"), ("Bob", "S-B"), ("Carol", "S-C")]:
        ledger.add_candidate(admin, name, "Dept", reg, 1, "President", "")

    assert [c.name for c in ledger.get_candidates("President")] == [
        "Alice",
        "Bob",
        "Carol",
    ]


@pytest.mark.unit
@pytest.mark.invariant
def test_candidates_can_be_added_in_every_phase(ledger, admin):
    ledger.add_candidate(admin, "Alice", "Physics", "S-A", 3, "President", "")
    ledger.start_voting(admin)
    ledger.add_candidate(admin, "Bob", "History", "S-B", 2, "President", "")
    ledger.end_voting(admin)
    ledger.add_candidate(admin, "Carol", "Economics", "S-C", 4, "President", "")

    candidates = ledger.get_candidates("President")
    assert [c.name for c in candidates] == ["Alice", "Bob", "Carol"]
    assert all(c.vote_count == 0 for c in candidates)


@pytest.mark.unit
def test_empty_reg_number_does_not_register(ledger, admin):
    ledger.register_voter("0xV1", "Dana", "Maths", "", 2)
    ledger.add_candidate(admin, "Alice", "Physics", "S-A", 3, "President", "")
    ledger.start_voting(admin)

    assert not ledger.get_voter("0xV1").is_registered
    with pytest.raises(YouMustBeRegisteredToVote):
        ledger.vote("0xV1", "President", 0)

    # The identity may register again with a real number and then vote
    ledger.register_voter("0xV1", "Dana", "Maths", "S1", 2)
    ledger.vote("0xV1", "President", 0)

    assert ledger.get_vote_count("President", 0) == 1
    assert ledger.db.query_one(
        "SELECT COUNT(*) FROM voters WHERE identity = ?", ["0xV1"]
    )[0] == 1

    # The empty registration number was consumed by the first registration
    with pytest.raises(RegistrationNumberAlreadyUsed):
        ledger.register_voter("0xV2", "Eli", "Art", "", 1)
    assert not ledger.get_voter("0xV2").is_registered


@pytest.mark.unit
def test_large_year_of_study_is_stored(ledger, admin):
    ledger.register_voter("0xV1", "Dana", "Maths", "S1", 2**40)
    ledger.add_candidate(admin, "Alice", "Physics", "S-A", 2**40, "President", "")

    assert ledger.get_voter("0xV1").year_of_study == 2**40
    assert ledger.get_candidates("President")[0].year_of_study == 2**40


@pytest.mark.unit
@pytest.mark.parametrize("year_of_study", [-1, 2**63, 2**64])
def test_year_of_study_out_of_range(ledger, admin, year_of_study):
    with pytest.raises(ValueError):
        ledger.register_voter("0xV1", "Dana", "Maths", "S1", year_of_study)
    with pytest.raises(ValueError):
        ledger.add_candidate(
            admin, "Alice", "Physics", "S-A", year_of_study, "President", ""
        )

    assert not ledger.get_voter("0xV1").is_registered
    assert ledger.get_all_positions() == []
    # Nothing was written, so the registration number is still free
    ledger.register_voter("0xV1", "Dana", "Maths", "S1", 2)
    assert ledger.get_events()[-1][1] == VoterRegistered(voter="0xV1")
    assert len(ledger.get_events()) == 1
