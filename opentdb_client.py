from __future__ import annotations
import logging, os, requests
from typing import Any, Dict, Optional
from dotenv import load_dotenv

from errors import UpstreamError
from models import QuestionBatch, QuizFilters, ResponseCode
load_dotenv()

log = logging.getLogger(__name__)

class OpenTriviaClient:
    """
    Minimal Open Trivia Database client.
    Docs: https://opentdb.com/api_config.php
    Every call is single-attempt; failures surface as UpstreamError.
    """
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or os.getenv("OPENTDB_URL", "https://opentdb.com")).rstrip("/")
        self.timeout = timeout if timeout is not None else float(os.getenv("OPENTDB_TIMEOUT", "10"))
        self.http = session or requests.Session()
        log.info("OpenTriviaClient configured: url=%s timeout=%ss", self.base_url, self.timeout)

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            resp = self.http.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamError(f"Open Trivia DB unreachable: {e}") from e

        if resp.status_code != 200:
            raise UpstreamError(f"Open Trivia DB error {resp.status_code}: {resp.text[:200]}")
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError("Open Trivia DB returned invalid JSON") from e
        if not isinstance(data, dict):
            raise UpstreamError("Open Trivia DB returned an unexpected payload")
        return data

    def request_token(self) -> str:
        data = self._get("/api_token.php", {"command": "request"})
        token = data.get("token")
        if data.get("response_code", ResponseCode.SUCCESS) != ResponseCode.SUCCESS or not token:
            raise UpstreamError(f"Token request failed: {data.get('response_message') or data}")
        return token

    def reset_token(self, token: str) -> int:
        """Returns the upstream response code (3 means the token no longer exists)."""
        data = self._get("/api_token.php", {"command": "reset", "token": token})
        if "response_code" not in data:
            raise UpstreamError("Token reset response has no response_code")
        return int(data["response_code"])

    def fetch_questions(self, amount: int, filters: Optional[QuizFilters] = None, token: Optional[str] = None) -> QuestionBatch:
        params: Dict[str, Any] = {"amount": amount}
        if filters:
            params.update(filters.as_params())
        if token:
            params["token"] = token
        data = self._get("/api.php", params)
        try:
            return QuestionBatch.from_api(data)
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Malformed question batch: {e}") from e
