"""
FastAPI Backend for the SAT Tutor Agent

Provides REST API endpoints for:
- Tutoring chat turns (bearer auth via Supabase)
- Reading and resetting a student's tutoring state
- Searching the practice question table
"""

from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
import os
import sys
import time
import logging
import signal

# Add the sat_tutor_agent package to Python path
backend_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(backend_dir)

package_src = os.path.join(project_root, 'sat_tutor_agent', 'src')
if os.path.exists(package_src) and package_src not in sys.path:
    sys.path.insert(0, package_src)

from lib.logger import setup_logging, get_logger
from lib.supabase_client import get_supabase_client
from lib.auth import get_current_user, require_role

from sat_tutor_agent.config import TutorConfig
from sat_tutor_agent.question_bank import search_questions
from sat_tutor_agent.sat_tutor import SatTutor, state_summary

config = TutorConfig.from_env()

setup_logging(level=getattr(logging, config.log_level.upper(), logging.INFO), use_colors=True)

logger = get_logger("backend.main")

# Singleton so the OpenAI and Supabase clients are built once
_tutor_instance = None


def get_tutor_instance() -> SatTutor:
    """Get or create singleton SatTutor instance."""
    global _tutor_instance
    if _tutor_instance is None:
        try:
            supabase = get_supabase_client(config)
        except ValueError as e:
            logger.warning("Supabase not configured, tutoring state kept in memory", data={"error": str(e)})
            supabase = None
        _tutor_instance = SatTutor(config, supabase_client=supabase)
    return _tutor_instance


app = FastAPI(
    title="SAT Tutor Agent API",
    description="REST API for the conversational SAT tutor",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== Pydantic Models ====================

class ChatRequest(BaseModel):
    message: str = Field(min_length=1)


class ChatResponse(BaseModel):
    reply: str
    mode: str


class QuizSummary(BaseModel):
    topic: str
    difficulty: str
    question_count: int


class StateSummary(BaseModel):
    user_id: str
    current_state: str
    preferences: Dict[str, Any]
    active_module: Optional[str] = None
    quiz: Optional[QuizSummary] = None
    goal: Optional[str] = None
    test_date: Optional[str] = None
    message_count: int
    updated_at: Optional[str] = None


class PracticeQuestionOut(BaseModel):
    id: str
    topic: str
    difficulty: str
    text: str
    options: List[str]


# ==================== Endpoints ====================

@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "status": "ok",
        "service": "SAT Tutor Agent API",
        "app_name": config.app_name,
    }


@app.post("/api/ai/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    user: dict = Depends(get_current_user),
    tutor: SatTutor = Depends(get_tutor_instance),
):
    """Run one tutoring turn for the authenticated student."""
    start_time = time.time()
    logger.request("POST", "/api/ai/chat", user_id=user["id"], data={"message_length": len(request.message)})

    try:
        result = await tutor.respond(user["id"], request.message)
    except Exception as e:
        logger.error("Error in chat", error=e, data={"user_id": user["id"][:20]})
        raise HTTPException(status_code=500, detail=f"Error generating reply: {str(e)}")

    logger.turn(user["id"], result.mode.value, result.reply, time.time() - start_time)
    return ChatResponse(reply=result.reply, mode=result.mode.value)


@app.get("/api/tutor/state", response_model=StateSummary)
async def get_my_state(
    user: dict = Depends(get_current_user),
    tutor: SatTutor = Depends(get_tutor_instance),
):
    """Tutoring state for the caller."""
    state = await tutor.get_state(user["id"])
    return state_summary(state)


@app.delete("/api/tutor/state")
async def reset_my_state(
    user: dict = Depends(get_current_user),
    tutor: SatTutor = Depends(get_tutor_instance),
):
    """Forget the caller's tutoring state."""
    if not await tutor.reset_state(user["id"]):
        raise HTTPException(status_code=500, detail="Failed to reset tutoring state")
    logger.success("Tutoring state reset", data={"user_id": user["id"][:20]})
    return {"status": "deleted", "user_id": user["id"]}


@app.get("/api/tutor/state/{user_id}", response_model=StateSummary)
async def get_student_state(
    user_id: str,
    user: dict = Depends(require_role("tutor", "admin")),
    tutor: SatTutor = Depends(get_tutor_instance),
):
    """Tutoring state for any student (tutors and admins only)."""
    state = await tutor.get_state(user_id)
    return state_summary(state)


@app.get("/api/practice/questions", response_model=List[PracticeQuestionOut])
async def practice_questions(
    query: str = "",
    limit: int = Query(5, ge=1, le=20),
    difficulty: str = "Medium",
    user: dict = Depends(get_current_user),
):
    """Fuzzy search over the practice question table (answers are not included)."""
    return [
        PracticeQuestionOut(id=q.id, topic=q.topic, difficulty=q.difficulty, text=q.text, options=list(q.options))
        for q in search_questions(query, limit=limit, difficulty=difficulty)
    ]


if __name__ == "__main__":
    import uvicorn

    def handle_exit(*args):
        """Handle graceful shutdown."""
        logger.section("SERVER SHUTDOWN", {"reason": "signal received"})
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_exit)
    signal.signal(signal.SIGTERM, handle_exit)

    try:
        uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
    except KeyboardInterrupt:
        logger.info("🛑 Server stopped.")
        sys.exit(0)
