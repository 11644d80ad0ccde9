"""
HTTP gateway for nominations, assessments, and results.
Thin adapter: request parsing and status codes only, all rules live in the service.
"""
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from dao_assessment import __version__
from dao_assessment.core.config import ApiConfig, CandidateSeed
from dao_assessment.scoring import (
    Rejection,
    RejectionKind,
    assessment_to_dict,
    candidate_to_dict,
)
from dao_assessment.services import AssessmentService

logger = structlog.get_logger()

_STATUS_BY_KIND = {
    RejectionKind.UNKNOWN_CANDIDATE: 404,
    RejectionKind.NOT_NOMINATOR: 403,
    RejectionKind.WRONG_PHASE: 409,
}


class SubmitAssessmentRequest(BaseModel):
    """Body of POST /api/submit-assessment. Fields are optional so the
    service, not the parser, reports what is missing."""

    candidate: Any = None
    assessor: Any = None
    traits: Any = None
    feedback: str | None = None
    signature: str | None = None


class NominationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    address: str | None = None
    statement: str | None = None
    nominated_by: str | None = Field(default=None, alias="nominatedBy")


class WithdrawalRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    requested_by: str | None = Field(default=None, alias="requestedBy")


def request_rejection(exc: RequestValidationError) -> Rejection:
    """Describe the first body parsing error as a rejection."""
    errors = exc.errors()
    if not errors:
        return Rejection(RejectionKind.MALFORMED_REQUEST, "Invalid request body")

    error = errors[0]
    loc = [part for part in error.get("loc", ()) if isinstance(part, str) and part != "body"]
    field = ".".join(loc) or None
    if error.get("type") == "missing":
        return Rejection(RejectionKind.MISSING_FIELD, "Missing required fields", field=field)
    message = f"Invalid value for {field}" if field else "Invalid request body"
    return Rejection(RejectionKind.MALFORMED_REQUEST, message, field=field)


def rejection_response(rejection: Rejection) -> JSONResponse:
    """Map a rejection to its JSON error body and status code."""
    status = _STATUS_BY_KIND.get(rejection.kind, 400)
    return JSONResponse(
        status_code=status,
        content={"success": False, **rejection.to_dict()},
    )


def create_app(
    service: AssessmentService,
    api_config: ApiConfig | None = None,
    seeds: list[CandidateSeed] | None = None,
) -> FastAPI:
    """Build the FastAPI application around an assessment service.

    Args:
        service: Service holding the record store and rubric.
        api_config: Rate limits and CORS origins.
        seeds: Default candidates inserted at startup when the store is empty.
    """
    api_config = api_config or ApiConfig()
    started_at = datetime.now(UTC)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if seeds:
            await service.seed_candidates(seeds)
        logger.info("api_started", version=__version__)
        yield
        logger.info("api_stopped")

    limiter = Limiter(key_func=get_remote_address)
    app = FastAPI(title="DAO Assessment API", version=__version__, lifespan=lifespan)
    app.state.limiter = limiter
    app.state.service = service
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    read_limit = limiter.limit(api_config.rate_limit)
    write_limit = limiter.limit(api_config.write_rate_limit)

    @app.get("/api/health")
    @read_limit
    async def health(request: Request) -> dict:
        """Health check endpoint."""
        now = datetime.now(UTC)
        return {
            "success": True,
            "status": "healthy",
            "phase": service.phase.value,
            "timestamp": now.isoformat(),
            "uptime": (now - started_at).total_seconds(),
        }

    @app.get("/api/candidates")
    @read_limit
    async def list_candidates(request: Request) -> dict:
        candidates = await service.list_candidates()
        return {
            "success": True,
            "count": len(candidates),
            "candidates": [candidate_to_dict(c) for c in candidates],
        }

    @app.get("/api/candidates/{candidate_id}")
    @read_limit
    async def get_candidate(candidate_id: str, request: Request) -> dict:
        candidate = await service.get_candidate(candidate_id)
        if candidate is None:
            raise HTTPException(status_code=404, detail="Candidate not found")
        return {"success": True, "candidate": candidate_to_dict(candidate)}

    @app.post("/api/candidates")
    @write_limit
    async def nominate(body: NominationRequest, request: Request) -> Any:
        result = await service.nominate(body.name, body.address, body.statement, body.nominated_by)
        if isinstance(result, Rejection):
            return rejection_response(result)
        return {
            "success": True,
            "message": "Candidate nominated successfully",
            "candidateId": result.id,
        }

    @app.post("/api/candidates/{candidate_id}/withdraw")
    @write_limit
    async def withdraw(candidate_id: str, body: WithdrawalRequest, request: Request) -> Any:
        result = await service.withdraw(candidate_id, body.requested_by)
        if isinstance(result, Rejection):
            return rejection_response(result)
        return {"success": True, "message": "Nomination withdrawn", "candidateId": result.id}

    @app.post("/api/submit-assessment")
    @write_limit
    async def submit_assessment(body: SubmitAssessmentRequest, request: Request) -> Any:
        result = await service.submit(
            body.candidate, body.assessor, body.traits, body.feedback, body.signature
        )
        if isinstance(result, Rejection):
            return rejection_response(result)
        return {
            "success": True,
            "message": "Assessment submitted successfully",
            "assessmentId": result.id,
        }

    @app.get("/api/results/{candidate_id}")
    @read_limit
    async def candidate_results(candidate_id: str, request: Request) -> dict:
        results = await service.candidate_results(candidate_id)
        if results is None:
            raise HTTPException(status_code=404, detail="Candidate not found")
        return {"success": True, **results.to_dict()}

    @app.get("/api/results")
    @read_limit
    async def all_results(request: Request) -> dict:
        board = await service.leaderboard()
        return {"success": True, **board.to_dict()}

    @app.get("/api/stats")
    @read_limit
    async def stats(request: Request) -> dict:
        current = await service.stats()
        return {"success": True, "stats": current.to_dict()}

    @app.get("/api/admin/assessments")
    @read_limit
    async def all_assessments(request: Request) -> dict:
        assessments = await service.list_assessments()
        return {
            "success": True,
            "count": len(assessments),
            "assessments": [assessment_to_dict(a) for a in assessments],
        }

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def body_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return rejection_response(request_rejection(exc))

    return app
