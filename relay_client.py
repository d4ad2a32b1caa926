from __future__ import annotations
import os
from typing import Any, Dict, Optional

import requests
from dotenv import load_dotenv

from errors import RateLimited, SessionNotFound, UpstreamError
from models import QuestionBatch, QuizFilters, Session
load_dotenv()

DEFAULT_BASE_URL = os.getenv("QUIZ_RELAY_URL", "http://127.0.0.1:5000")

class RelayClient:
    """
    HTTP client for the relay API. Exposes the same three operations as
    relay.Relay and maps HTTP failures back onto the same exceptions, so
    QuizEngine can use either one.
    """
    def __init__(self, base_url: Optional[str] = None, timeout: float = 30.0):
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, not_found: Optional[str] = None, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            r = requests.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise UpstreamError(f"Relay unreachable at {url}: {e}") from e

        if r.status_code == 429:
            retry_after = r.headers.get("Retry-After", "0")
            raise RateLimited(retry_after=float(retry_after) if retry_after.isdigit() else 0.0)
        if r.status_code >= 400:
            if r.status_code == 404 and not_found is not None:
                raise SessionNotFound(not_found)
            raise UpstreamError(f"Relay HTTP {r.status_code}: {_detail(r)}")
        try:
            return r.json()
        except ValueError as e:
            raise UpstreamError("Relay returned invalid JSON") from e

    # ---------- API wrappers ----------
    def issue_token(self) -> Session:
        data = self._request("POST", "/api/quiz/session")
        return _to_session(data)

    def reset_token(self, session_id: str) -> Session:
        data = self._request("PUT", "/api/quiz/session/reset", json={"sessionId": session_id}, not_found=session_id)
        return _to_session(data)

    def fetch_questions(
        self,
        amount: int,
        filters: Optional[QuizFilters] = None,
        session_id: Optional[str] = None,
    ) -> QuestionBatch:
        params: Dict[str, Any] = {"amount": amount}
        if filters:
            params.update(filters.as_params())
        if session_id:
            params["sessionId"] = session_id
        data = self._request("GET", "/api/quiz/questions", params=params)
        try:
            return QuestionBatch.from_api(data)
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Malformed question batch: {e}") from e

    def ping(self) -> Dict[str, Any]:
        return self._request("GET", "/")

def _to_session(data: Any) -> Session:
    try:
        return Session(session_id=data["sessionId"], token=data["token"])
    except (KeyError, TypeError) as e:
        raise UpstreamError(f"Malformed session payload: {e}") from e

def _detail(r: requests.Response) -> str:
    try:
        return str(r.json().get("detail", r.text[:200]))
    except (ValueError, AttributeError):
        return r.text[:200]
