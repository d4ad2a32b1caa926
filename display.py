from __future__ import annotations
import html
import string
from typing import List
from urllib.parse import unquote

from models import AnsweredQuestion, QuizState

def decode_text(text: str) -> str:
    """Open Trivia DB strings come HTML-escaped (default) or percent-encoded (encode=url3986)."""
    return html.unescape(unquote(text))

def option_letter(index: int) -> str:
    return string.ascii_uppercase[index]

def format_question(state: QuizState) -> str:
    aq: AnsweredQuestion = state.current_question
    lines: List[str] = [
        f"Question {state.current_index + 1}/{state.total}   Score: {state.score}",
        f"[{decode_text(aq.question.category)} | {aq.question.difficulty}]",
        decode_text(aq.question.question),
        "",
    ]
    for i, answer in enumerate(aq.shuffled_answers):
        lines.append(f"  {option_letter(i)}) {decode_text(answer)}")
    return "\n".join(lines)

def format_feedback(state: QuizState) -> str:
    if state.answered_correctly:
        return "✅ Correct! Well done."
    return f"❌ Incorrect. The correct answer is: {decode_text(state.current_question.correct_answer)}"

def result_verdict(score: int, total: int) -> str:
    if total > 0 and score == total:
        return "Perfect score! 🎉"
    if score >= total / 2:
        return "Good job! 👍"
    return "Keep practicing! 💪"

def format_result(state: QuizState) -> str:
    return (
        "\n===== Quiz Completed! =====\n"
        f"Score: {state.score}/{state.total}\n"
        f"{result_verdict(state.score, state.total)}\n"
        + "=" * 27
    )
