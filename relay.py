from __future__ import annotations
import logging
import os
import threading
import time
import uuid
from typing import Callable, Dict, Optional

from dotenv import load_dotenv

from errors import RateLimited, SessionNotFound, UpstreamError
from models import QuestionBatch, QuizFilters, ResponseCode, Session
from opentdb_client import OpenTriviaClient
load_dotenv()

log = logging.getLogger(__name__)

# Open Trivia DB allows one question request per IP every 5 seconds.
DEFAULT_MIN_INTERVAL = 5.0

class TokenStore:
    """In-memory session_id -> upstream token map. Lives as long as the process."""
    def __init__(self):
        self._tokens: Dict[str, str] = {}
        self._lock = threading.Lock()

    def put(self, session_id: str, token: str) -> None:
        with self._lock:
            self._tokens[session_id] = token

    def get(self, session_id: str) -> Optional[str]:
        return self._tokens.get(session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

class RateGate:
    """
    Single global gate: at most one accepted call per `min_interval` seconds,
    across all sessions. A call is consumed when accepted, whether or not the
    gated work later succeeds.
    """
    def __init__(self, min_interval: float = DEFAULT_MIN_INTERVAL):
        self.min_interval = min_interval
        self.last_call: Optional[float] = None
        self._lock = threading.Lock()

    def try_acquire(self, now: float) -> bool:
        with self._lock:
            if self.last_call is not None and now - self.last_call < self.min_interval:
                return False
            self.last_call = now
            return True

    def retry_after(self, now: float) -> float:
        if self.last_call is None:
            return 0.0
        return max(0.0, self.min_interval - (now - self.last_call))

class Relay:
    """
    Mediates every call to the question bank:
    - issue_token: new upstream token under a fresh local session id.
    - fetch_questions: gated by RateGate; the batch is returned verbatim.
    - reset_token: resets the upstream token, re-issuing it if upstream forgot it.
    """
    def __init__(
        self,
        client: OpenTriviaClient,
        store: Optional[TokenStore] = None,
        gate: Optional[RateGate] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.store = store if store is not None else TokenStore()
        if gate is None:
            gate = RateGate(float(os.getenv("RELAY_MIN_INTERVAL_SECONDS", DEFAULT_MIN_INTERVAL)))
        self.gate = gate
        self.clock = clock

    # ---------- Session lifecycle ----------
    def issue_token(self) -> Session:
        try:
            token = self.client.request_token()
        except UpstreamError as e:
            log.warning("token request failed: %s", e)
            raise
        sid = self._new_session_id()
        self.store.put(sid, token)
        log.info("issued token for session %s", sid)
        return Session(session_id=sid, token=token)

    def reset_token(self, session_id: str) -> Session:
        token = self.store.get(session_id)
        if token is None:
            raise SessionNotFound(session_id)

        try:
            code = self.client.reset_token(token)
            if code == ResponseCode.TOKEN_NOT_FOUND:
                # Expired upstream: replace it under the same session id.
                token = self.client.request_token()
        except UpstreamError as e:
            log.warning("token reset failed for session %s: %s", session_id, e)
            raise
        if code == ResponseCode.TOKEN_NOT_FOUND:
            self.store.put(session_id, token)
            log.info("token for session %s expired upstream; re-issued", session_id)
        else:
            log.info("reset token for session %s (code=%s)", session_id, code)
        return Session(session_id=session_id, token=token)

    # ---------- Questions ----------
    def fetch_questions(
        self,
        amount: int,
        filters: Optional[QuizFilters] = None,
        session_id: Optional[str] = None,
    ) -> QuestionBatch:
        now = self.clock()
        if not self.gate.try_acquire(now):
            wait = self.gate.retry_after(now)
            log.warning("question fetch rejected by rate gate (retry in %.1fs)", wait)
            raise RateLimited(retry_after=wait)

        # Unknown or missing sessions fetch without a token.
        token = self.store.get(session_id) if session_id else None
        try:
            return self.client.fetch_questions(amount, filters, token=token)
        except UpstreamError as e:
            log.warning("question fetch failed: %s", e)
            raise

    # ---------- helpers ----------
    def _new_session_id(self) -> str:
        sid = uuid.uuid4().hex
        while sid in self.store:
            sid = uuid.uuid4().hex
        return sid
