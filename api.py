from __future__ import annotations
import math
from typing import List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from errors import RateLimited, SessionNotFound, UpstreamError
from models import QuestionBatch, QuizFilters, Session
from opentdb_client import OpenTriviaClient
from relay import Relay

# ---------- Pydantic IO models ----------
class SessionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    token: str

class ResetSessionIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId", examples=["3f2b9c0e8d7a4b6c9e1f2a3b4c5d6e7f"])

class QuestionOut(BaseModel):
    category: str
    type: str
    difficulty: str
    question: str
    correct_answer: str
    incorrect_answers: List[str]

class QuestionBatchOut(BaseModel):
    response_code: int
    results: List[QuestionOut]

# ---------- App ----------
app = FastAPI(title="Trivia Quiz Relay API", version="1.0.0")

_client = OpenTriviaClient()
_relay = Relay(client=_client)

def _to_session_out(s: Session) -> SessionOut:
    return SessionOut(session_id=s.session_id, token=s.token)

def _to_batch_out(b: QuestionBatch) -> QuestionBatchOut:
    return QuestionBatchOut(**b.to_api())

@app.get("/")
def health():
    return {"message": "Quiz relay API is running!"}

@app.post("/api/quiz/session", response_model=SessionOut)
def create_session():
    try:
        return _to_session_out(_relay.issue_token())
    except UpstreamError:
        raise HTTPException(status_code=502, detail="Failed to create session token")

@app.put("/api/quiz/session/reset", response_model=SessionOut)
def reset_session(payload: ResetSessionIn):
    try:
        return _to_session_out(_relay.reset_token(payload.session_id))
    except SessionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UpstreamError:
        raise HTTPException(status_code=502, detail="Failed to reset session token")

@app.get("/api/quiz/questions", response_model=QuestionBatchOut)
def get_questions(
    amount: int = Query(10, ge=1, le=50),
    category: Optional[int] = Query(None, ge=1),
    difficulty: Optional[Literal["easy", "medium", "hard"]] = None,
    type: Optional[Literal["multiple", "boolean"]] = None,
    session_id: Optional[str] = Query(None, alias="sessionId"),
):
    filters = QuizFilters(category=category, difficulty=difficulty, type=type)
    try:
        batch = _relay.fetch_questions(amount, filters, session_id=session_id)
    except RateLimited as e:
        raise HTTPException(
            status_code=429,
            detail=str(e),
            headers={"Retry-After": str(max(1, math.ceil(e.retry_after)))},
        )
    except UpstreamError:
        raise HTTPException(status_code=502, detail="Failed to fetch questions from the API")
    return _to_batch_out(batch)
