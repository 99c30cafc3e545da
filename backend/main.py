"""
AI Interview Assistant - FastAPI Backend

Hosts the interview workflow:
- Resume upload and contact field extraction
- Info collection for missing fields
- Six timed questions scored by the answer evaluator
- Resume-after-restart for interrupted interviews
- Read-only candidate listing for interviewers

Compatible with llama.cpp REST API or Gemini.
"""
import sys
import os
from typing import Optional

from fastapi import FastAPI, UploadFile, File, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

# Add this directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from utils.config import config
from utils.errors import (
    InfoValidationError,
    InvalidTransitionError,
    ResumeExtractionError,
    UnsupportedResumeError,
)
from models.schemas import (
    AnswerSubmission,
    CandidateStatus,
    DraftUpdate,
    InfoSubmission,
)
from interview.agents import EvaluationOrchestrator
from interview.scoring import AnswerScorer
from interview.state import InterviewSessionController
from llm.client import LLMClient
from resume.parser import ResumeTextExtractor, parse_contact_info
from storage.store import CandidateStore, JsonFileBlobStore

VERSION = "1.0.0"


def build_controller() -> InterviewSessionController:
    """Wire the default controller from config."""
    store = CandidateStore(JsonFileBlobStore(config.storage.data_dir), config.storage.storage_key)
    orchestrator = EvaluationOrchestrator(LLMClient())
    return InterviewSessionController(store, orchestrator)


def create_app(
    controller: Optional[InterviewSessionController] = None,
    extractor: Optional[ResumeTextExtractor] = None,
) -> FastAPI:
    # ================================================================
    # FastAPI App Initialization
    # ================================================================

    app = FastAPI(
        title="AI Interview Assistant API",
        description="Timed AI-scored interviews with resume-based questions",
        version=VERSION
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    session = controller or build_controller()
    resume_extractor = extractor or ResumeTextExtractor()
    store = session.store

    # ================================================================
    # Interviewee endpoints
    # ================================================================

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {
            "status": "running",
            "version": VERSION,
            "service": "AI Interview Assistant",
            "llm_provider": config.llm.provider,
            "candidates": len(store.list()),
        }

    @app.get("/session")
    async def get_session():
        """Current workflow step, question, timer and candidate."""
        return session.snapshot()

    @app.post("/resume")
    async def upload_resume(file: UploadFile = File(...)):
        """
        Upload a PDF or DOCX resume and start a candidate.

        Returns:
            Session snapshot (info collection or first question)
        """
        data = await file.read()
        try:
            text = resume_extractor.extract(data, file.content_type or "")
        except UnsupportedResumeError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ResumeExtractionError as e:
            raise HTTPException(status_code=422, detail=str(e))

        try:
            await session.upload_resume(parse_contact_info(text))
        except InvalidTransitionError as e:
            raise HTTPException(status_code=409, detail=str(e))

        return session.snapshot()

    @app.post("/info")
    async def submit_info(request: InfoSubmission):
        """Submit missing contact fields."""
        try:
            await session.submit_info(request.name, request.email, request.phone)
        except InfoValidationError as e:
            raise HTTPException(status_code=422, detail={"errors": e.errors})
        except InvalidTransitionError as e:
            raise HTTPException(status_code=409, detail=str(e))

        return session.snapshot()

    @app.put("/answer/draft")
    async def update_draft(request: DraftUpdate):
        """Keep the in-progress answer so it can be auto-submitted on timeout."""
        session.update_draft(request.text)
        return {"saved": len(session.draft)}

    @app.post("/answer")
    async def submit_answer(request: AnswerSubmission):
        """
        Submit an answer for the current question.

        Returns:
            The scored answer (None if the submission was ignored) and the new session state
        """
        try:
            record = await session.submit_answer(request.answer, request.time_used_seconds)
        except InvalidTransitionError as e:
            raise HTTPException(status_code=409, detail=str(e))

        return {
            "accepted": record is not None,
            "answer": record.model_dump(mode="json") if record else None,
            "session": session.snapshot(),
        }

    @app.post("/timer/{action}")
    async def control_timer(action: str):
        """Start, pause or resume the current question's countdown."""
        handlers = {
            "start": session.start_timer,
            "pause": session.pause_timer,
            "resume": session.resume_timer,
        }
        if action not in handlers:
            raise HTTPException(status_code=404, detail=f"Unknown timer action: {action}")
        try:
            handlers[action]()
        except InvalidTransitionError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return session.timer.to_dict()

    @app.post("/session/continue")
    async def continue_session():
        """Resume the interrupted interview."""
        try:
            await session.continue_session()
        except InvalidTransitionError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return session.snapshot()

    @app.post("/session/restart")
    async def restart_session():
        """Discard the interrupted interview."""
        try:
            session.restart_session()
        except InvalidTransitionError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return session.snapshot()

    @app.post("/session/new")
    async def start_new():
        """Go back to upload for the next candidate."""
        try:
            session.start_new()
        except InvalidTransitionError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return session.snapshot()

    # ================================================================
    # Interviewer endpoints
    # ================================================================

    @app.get("/candidates")
    async def list_candidates(
        search: str = "",
        status: Optional[CandidateStatus] = None,
        sort_by: str = Query("score", pattern="^(score|date|name)$"),
        order: str = Query("desc", pattern="^(asc|desc)$"),
    ):
        """Candidate list for the dashboard."""
        candidates = store.query(search, status, sort_by, descending=(order == "desc"))
        return {
            "total": len(store.list()),
            "stats": store.stats(),
            "candidates": [
                {
                    "id": c.id,
                    "name": c.name,
                    "email": c.email,
                    "phone": c.phone,
                    "status": c.status.value,
                    "score": c.score,
                    "started_at": c.started_at.isoformat(),
                    "completed_at": c.completed_at.isoformat() if c.completed_at else None,
                    "questions_answered": len(c.answers),
                }
                for c in candidates
            ],
        }

    @app.get("/candidates/{candidate_id}")
    async def get_candidate(candidate_id: str):
        """Full record for one candidate, with answer interpretations."""
        candidate = store.get(candidate_id)
        if candidate is None:
            raise HTTPException(status_code=404, detail=f"Candidate {candidate_id} not found")

        completed = candidate.status == CandidateStatus.COMPLETED
        return {
            "candidate": candidate.model_dump(mode="json"),
            "recommendation": AnswerScorer.get_recommendation(candidate.score) if completed else None,
            "answers": [
                {
                    "question_number": i + 1,
                    "interpretation": AnswerScorer.get_score_interpretation(a.score),
                    "efficiency_percent": round((1 - a.time_used_seconds / a.time_limit_seconds) * 100)
                    if a.time_limit_seconds else 0,
                }
                for i, a in enumerate(candidate.answers)
            ],
        }

    return app


# ================================================================
# Main Entry Point
# ================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
