import logging
import os
from dataclasses import asdict
from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from data.database import BIGINT_MAX
from election import ElectionLedger
from election.errors import LedgerError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Election Ledger",
    description="Voter registration, per-position balloting and tallying",
)

# Global ledger - created by configure_ledger() or lazily from the environment
ledger: Optional[ElectionLedger] = None

CALLER_HEADER = "X-Caller-Identity"

ERROR_STATUS = {
    "Unauthorized": 403,
    "NotRegistered": 403,
    "PhaseViolation": 409,
    "DuplicateRegistration": 409,
    "DuplicateCandidate": 409,
    "DuplicateVote": 409,
    "InvalidIndex": 404,
}


class VoterRegistration(BaseModel):
    name: str = Field(..., min_length=1)
    department: str
    reg_number: str = Field(..., min_length=1)
    year_of_study: int = Field(..., ge=0, le=BIGINT_MAX)


class CandidateRegistration(BaseModel):
    name: str = Field(..., min_length=1)
    department: str
    reg_number: str = Field(..., min_length=1)
    year_of_study: int = Field(..., ge=0, le=BIGINT_MAX)
    position: str = Field(..., min_length=1)
    img_hash: str = ""


class Ballot(BaseModel):
    position: str = Field(..., min_length=1)
    candidate_index: int


@app.on_event("startup")
async def startup_event():
    """Initialize the application."""
    logger.info("Starting Election Ledger")


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up on shutdown."""
    logger.info("Shutting down Election Ledger")


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.category, 400),
        content={"error": exc.code, "category": exc.category, "detail": str(exc)},
    )


def configure_ledger(admin: Optional[str], db_path: Optional[str] = None) -> ElectionLedger:
    """Open the ledger served by the application, replacing any previous one."""
    global ledger
    if ledger is not None:
        ledger.close()
    ledger = ElectionLedger(admin=admin, db_path=db_path)
    logger.info(f"Ledger configured at {db_path or 'memory'}")
    return ledger


def get_ledger() -> ElectionLedger:
    """
    Get the configured ledger.
    Falls back to ELECTION_DATABASE_PATH / ELECTION_ADMIN from the environment.
    """
    global ledger
    if ledger is None:
        db_path = os.environ.get("ELECTION_DATABASE_PATH")
        admin = os.environ.get("ELECTION_ADMIN")
        if not db_path and not admin:
            raise HTTPException(status_code=500, detail="Ledger not configured")
        try:
            configure_ledger(admin, db_path)
        except Exception as e:
            logger.error(f"Failed to open ledger: {e}")
            raise HTTPException(status_code=500, detail=f"Ledger unavailable: {e}")
    return ledger


# Write API


@app.post("/api/voters")
async def register_voter(
    registration: VoterRegistration,
    caller: str = Header(..., alias=CALLER_HEADER),
):
    """Register the caller as a voter."""
    event = get_ledger().register_voter(
        caller,
        registration.name,
        registration.department,
        registration.reg_number,
        registration.year_of_study,
    )
    return event.to_record()


@app.post("/api/candidates")
async def add_candidate(
    registration: CandidateRegistration,
    caller: str = Header(..., alias=CALLER_HEADER),
):
    """Add a candidate for a position (administrator only)."""
    event = get_ledger().add_candidate(
        caller,
        registration.name,
        registration.department,
        registration.reg_number,
        registration.year_of_study,
        registration.position,
        registration.img_hash,
    )
    return event.to_record()


@app.post("/api/voting/start")
async def start_voting(caller: str = Header(..., alias=CALLER_HEADER)):
    return get_ledger().start_voting(caller).to_record()


@app.post("/api/voting/end")
async def end_voting(caller: str = Header(..., alias=CALLER_HEADER)):
    return get_ledger().end_voting(caller).to_record()


@app.post("/api/votes")
async def cast_vote(ballot: Ballot, caller: str = Header(..., alias=CALLER_HEADER)):
    """Cast the caller's ballot for one position."""
    event = get_ledger().vote(caller, ballot.position, ballot.candidate_index)
    return event.to_record()


# Read API


@app.get("/api/admin")
async def get_admin():
    return {"admin": get_ledger().get_admin()}


@app.get("/api/phase")
async def get_phase():
    return {"phase": get_ledger().get_phase().value}


@app.get("/api/positions")
async def get_positions():
    """Get positions in the order their first candidate was added."""
    return get_ledger().get_all_positions()


@app.get("/api/positions/{position:path}/candidates")
async def get_candidates(position: str):
    return [asdict(candidate) for candidate in get_ledger().get_candidates(position)]


@app.get("/api/positions/{position:path}/candidates/{candidate_index}/votes")
async def get_vote_count(position: str, candidate_index: int):
    vote_count = get_ledger().get_vote_count(position, candidate_index)
    return {
        "position": position,
        "candidate_index": candidate_index,
        "vote_count": vote_count,
    }


@app.get("/api/positions/{position:path}/winner")
async def get_winner(position: str):
    name, vote_count = get_ledger().get_winner(position)
    return {"position": position, "name": name, "vote_count": vote_count}


@app.get("/api/voters/{identity}")
async def get_voter(identity: str):
    """Get a voter record; unregistered identities get the empty record."""
    return asdict(get_ledger().get_voter(identity))


@app.get("/api/results")
async def get_results():
    return get_ledger().get_results()


@app.get("/api/events")
async def get_events():
    return [
        {"event_id": event_id, **event.to_record()}
        for event_id, event in get_ledger().get_events()
    ]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
