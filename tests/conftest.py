import pytest

from errors import UpstreamError
from models import Question, QuestionBatch, ResponseCode, Session

def make_question(n: int = 1, correct: str = "Paris") -> Question:
    return Question(
        category="Geography",
        type="multiple",
        difficulty="easy",
        question=f"Question {n}: what is the capital of France?",
        correct_answer=correct,
        incorrect_answers=("Lyon", "Marseille", "Nice"),
    )

class FakeUpstream:
    """Stands in for OpenTriviaClient: hands out distinct tokens and records calls."""
    def __init__(self):
        self.issued = 0
        self.reset_code = ResponseCode.SUCCESS
        self.batch = QuestionBatch(response_code=0, results=[make_question(i) for i in range(5)])
        self.fail_fetch = False
        self.fetch_calls = []
        self.reset_calls = []

    def request_token(self):
        self.issued += 1
        return f"token-{self.issued}"

    def reset_token(self, token):
        self.reset_calls.append(token)
        return int(self.reset_code)

    def fetch_questions(self, amount, filters=None, token=None):
        self.fetch_calls.append({"amount": amount, "filters": filters, "token": token})
        if self.fail_fetch:
            raise UpstreamError("boom")
        return self.batch

class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

class FakeRelay:
    """Stands in for Relay / RelayClient from the quiz engine's point of view."""
    def __init__(self, batches=None):
        self.batches = list(batches or [QuestionBatch(response_code=0, results=[make_question(i) for i in range(5)])])
        self.issued = []
        self.fetches = []
        self.resets = []
        self.fail_issue = False
        self.fetch_error = None

    def issue_token(self):
        if self.fail_issue:
            raise UpstreamError("token request failed")
        session = Session(session_id=f"sid-{len(self.issued) + 1}", token=f"tok-{len(self.issued) + 1}")
        self.issued.append(session)
        return session

    def fetch_questions(self, amount, filters=None, session_id=None):
        self.fetches.append((amount, session_id))
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.batches[min(len(self.fetches), len(self.batches)) - 1]

    def reset_token(self, session_id):
        self.resets.append(session_id)
        return Session(session_id=session_id, token="tok-reset")

class ManualScheduler:
    """Collects scheduled callbacks so tests decide when the feedback delay elapses."""
    def __init__(self):
        self.tasks = []

    def __call__(self, delay, fn):
        task = _Task(delay, fn)
        self.tasks.append(task)
        return task

    def fire(self):
        for task in list(self.tasks):
            self.tasks.remove(task)
            if not task.cancelled:
                task.fn()

class _Task:
    def __init__(self, delay, fn):
        self.delay = delay
        self.fn = fn
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

@pytest.fixture
def upstream():
    return FakeUpstream()

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def fake_relay():
    return FakeRelay()

@pytest.fixture
def scheduler():
    return ManualScheduler()

@pytest.fixture
def question_factory():
    return make_question
