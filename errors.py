from __future__ import annotations
from typing import Optional

class QuizError(Exception):
    """Base class for relay failures the quiz client knows how to handle."""

class RateLimited(QuizError):
    """The global fetch gate is closed; the caller may retry after `retry_after` seconds."""
    def __init__(self, retry_after: float, message: Optional[str] = None):
        self.retry_after = max(0.0, retry_after)
        super().__init__(message or "Rate limit exceeded. Please wait before making another request.")

class UpstreamError(QuizError):
    """Transport failure, non-2xx status or malformed payload from the question bank."""

class SessionNotFound(QuizError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__("Session token not found")
