from __future__ import annotations
import logging
import random
import threading
from typing import Any, Callable, Optional, Union

from errors import QuizError, RateLimited
from models import AnsweredQuestion, Phase, Question, QuizFilters, QuizState, ResponseCode
from relay import Relay
from relay_client import RelayClient

log = logging.getLogger(__name__)

DEFAULT_AMOUNT = 5
FEEDBACK_DELAY = 1.0

INIT_FAILED = "Failed to initialize quiz. Please try again."
LOAD_FAILED = "Failed to load questions. Please try again."
NO_QUESTIONS = "Could not load any questions. Please try again."
RESET_NEEDED = "Need to reset session. Please restart the quiz."
RATE_LIMITED = "Too many requests. Please wait a few seconds and restart the quiz."

Scheduler = Callable[[float, Callable[[], None]], Any]

def timer_schedule(delay: float, fn: Callable[[], None]) -> threading.Timer:
    """Default scheduler: runs `fn` once after `delay` seconds; the handle has cancel()."""
    t = threading.Timer(delay, fn)
    t.daemon = True
    t.start()
    return t

def shuffle_answers(question: Question, rng: random.Random) -> AnsweredQuestion:
    answers = [*question.incorrect_answers, question.correct_answer]
    rng.shuffle(answers)
    return AnsweredQuestion(question=question, shuffled_answers=tuple(answers))

class QuizEngine:
    """
    One quiz run against the relay, one question at a time:
    LOADING -> ANSWERING -> FEEDBACK -> ANSWERING ... -> RESULT,
    with ERROR reachable from any step. Relay failures never raise out of
    the engine; they end up in `state.error_message`.
    """
    def __init__(
        self,
        relay: Union[Relay, RelayClient],
        amount: int = DEFAULT_AMOUNT,
        filters: Optional[QuizFilters] = None,
        feedback_delay: float = FEEDBACK_DELAY,
        schedule: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
    ):
        self.relay = relay
        self.amount = amount
        self.filters = filters
        self.feedback_delay = feedback_delay
        self._schedule = schedule or timer_schedule
        self._rng = rng or random.Random()
        self.state = QuizState()
        self._started = False
        self._closed = False
        self._pending: Any = None
        # Bumped whenever a scheduled advance must no longer apply.
        self._generation = 0
        self._lock = threading.RLock()

    # ---------- lifecycle ----------
    def start(self) -> QuizState:
        with self._lock:
            self._require_open()
            if self._started:
                raise ValueError("Quiz already started; use restart().")
            self._started = True
            return self._begin()

    def restart(self) -> QuizState:
        with self._lock:
            self._require_open()
            if self.state.phase not in (Phase.RESULT, Phase.ERROR):
                raise ValueError("Quiz can only be restarted from the result or error screen.")
            self._cancel_pending()
            return self._begin()

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._cancel_pending()

    # ---------- play ----------
    def select_answer(self, answer: str) -> bool:
        """Returns False when the selection is ignored (locked, repeated or wrong phase)."""
        with self._lock:
            st = self.state
            if self._closed or st.phase is not Phase.ANSWERING or st.selected_answer is not None:
                return False

            st.selected_answer = answer
            if answer == st.current_question.correct_answer:
                st.score += 1
            st.phase = Phase.FEEDBACK

            gen = self._generation
            self._pending = self._schedule(self.feedback_delay, lambda: self._advance(gen))
            return True

    def _advance(self, gen: int) -> None:
        with self._lock:
            if self._closed or gen != self._generation or self.state.phase is not Phase.FEEDBACK:
                return
            self._pending = None
            st = self.state
            if st.current_index < len(st.questions) - 1:
                st.current_index += 1
                st.selected_answer = None
                st.phase = Phase.ANSWERING
            else:
                st.phase = Phase.RESULT

    # ---------- loading ----------
    def _begin(self) -> QuizState:
        self.state = QuizState(phase=Phase.LOADING)
        try:
            session = self.relay.issue_token()
        except QuizError as e:
            log.warning("session token request failed: %s", e)
            return self._fail(INIT_FAILED)
        self.state.session_id = session.session_id
        return self._load()

    def _load(self) -> QuizState:
        st = self.state
        try:
            batch = self.relay.fetch_questions(self.amount, self.filters, session_id=st.session_id)
        except RateLimited as e:
            log.warning("question fetch rate limited (retry in %.1fs)", e.retry_after)
            return self._fail(RATE_LIMITED, recoverable=True)
        except QuizError as e:
            log.warning("question fetch failed: %s", e)
            return self._fail(LOAD_FAILED)

        if batch.response_code == ResponseCode.SUCCESS:
            if not batch.results:
                return self._fail(NO_QUESTIONS)
            st.questions = [shuffle_answers(q, self._rng) for q in batch.results]
            st.current_index = 0
            st.score = 0
            st.selected_answer = None
            st.phase = Phase.ANSWERING
            return st

        if batch.response_code == ResponseCode.TOKEN_EMPTY:
            # Every question was served for this token; reset it and let the user start over.
            try:
                self.relay.reset_token(st.session_id)
            except QuizError as e:
                log.warning("token reset failed for session %s: %s", st.session_id, e)
            return self._fail(RESET_NEEDED, recoverable=True)

        log.warning("question bank answered response_code=%s", batch.response_code)
        return self._fail(LOAD_FAILED)

    # ---------- helpers ----------
    def _fail(self, message: str, recoverable: bool = False) -> QuizState:
        st = self.state
        st.phase = Phase.ERROR
        st.error_message = message
        st.recoverable = recoverable
        return st

    def _cancel_pending(self) -> None:
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _require_open(self) -> None:
        if self._closed:
            raise ValueError("Quiz engine is closed.")
