import pytest
import requests

from errors import UpstreamError
from models import QuizFilters
from opentdb_client import OpenTriviaClient

class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload

class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        if self.exc:
            raise self.exc
        return self.response

def make_client(**kwargs):
    http = FakeSession(**kwargs)
    return OpenTriviaClient(base_url="https://trivia.test/", timeout=1, session=http), http

def test_request_token():
    c, http = make_client(response=FakeResponse(payload={"response_code": 0, "token": "abc"}))
    assert c.request_token() == "abc"
    assert http.calls == [("https://trivia.test/api_token.php", {"command": "request"})]

def test_request_token_without_token_fails():
    c, _ = make_client(response=FakeResponse(payload={"response_code": 0}))
    with pytest.raises(UpstreamError):
        c.request_token()

def test_reset_token_returns_code():
    c, http = make_client(response=FakeResponse(payload={"response_code": 3}))
    assert c.reset_token("abc") == 3
    assert http.calls[0][1] == {"command": "reset", "token": "abc"}

def test_fetch_questions_builds_query():
    payload = {"response_code": 0, "results": [{
        "category": "Science", "type": "boolean", "difficulty": "hard",
        "question": "Water boils at 100&deg;C at sea level.",
        "correct_answer": "True", "incorrect_answers": ["False"],
    }]}
    c, http = make_client(response=FakeResponse(payload=payload))
    batch = c.fetch_questions(1, QuizFilters(category=17, type="boolean"), token="tok")
    assert batch.response_code == 0
    assert batch.results[0].incorrect_answers == ("False",)
    assert http.calls[0] == (
        "https://trivia.test/api.php",
        {"amount": 1, "category": 17, "type": "boolean", "token": "tok"},
    )

def test_fetch_without_token_omits_param():
    c, http = make_client(response=FakeResponse(payload={"response_code": 1, "results": []}))
    assert c.fetch_questions(5).response_code == 1
    assert http.calls[0][1] == {"amount": 5}

@pytest.mark.parametrize("kwargs", [
    {"exc": requests.ConnectionError("refused")},
    {"response": FakeResponse(status_code=503, text="unavailable")},
    {"response": FakeResponse(payload=None, text="<html>")},
    {"response": FakeResponse(payload={"results": []})},
])
def test_fetch_failures_become_upstream_errors(kwargs):
    c, _ = make_client(**kwargs)
    with pytest.raises(UpstreamError):
        c.fetch_questions(5)
