from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from app.models.constants import QUESTION_TYPE_MULTIPLE_SELECT
from app.services.response_validator import Answer, OptionSetAnswer, SingleOptionAnswer


@dataclass(frozen=True)
class QuestionOutcome:
    question_id: str
    points: float
    earned: float
    answered: bool

    @property
    def is_correct(self) -> bool:
        return self.answered and self.earned > 0


@dataclass(frozen=True)
class ScoreResult:
    score: float
    max_score: float
    score_percent: float
    passed: bool
    outcomes: list[QuestionOutcome] = field(default_factory=list)

    @property
    def correct_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.is_correct)

    @property
    def outcomes_by_question(self) -> dict[str, QuestionOutcome]:
        return {outcome.question_id: outcome for outcome in self.outcomes}


def correct_option_ids(question: Mapping[str, Any]) -> frozenset[str]:
    return frozenset(option['id'] for option in question.get('options', []) if option.get('is_correct'))


def is_answer_correct(question: Mapping[str, Any], answer: Answer | None) -> bool:
    if answer is None:
        return False
    correct = correct_option_ids(question)
    if not correct:
        return False

    if question['question_type'] == QUESTION_TYPE_MULTIPLE_SELECT:
        # All-or-nothing: subsets and supersets of the correct set earn nothing.
        return isinstance(answer, OptionSetAnswer) and answer.option_ids == correct

    return isinstance(answer, SingleOptionAnswer) and len(correct) == 1 and answer.option_id in correct


def score_attempt(snapshot: Mapping[str, Any], answers: Mapping[str, Answer]) -> ScoreResult:
    """Score typed answers against a quiz snapshot.

    ``answers`` maps question id to the answer given; missing questions score
    zero. Pure and deterministic, so finalized attempts can be re-scored for
    statistics without touching storage.
    """
    outcomes: list[QuestionOutcome] = []
    max_score = 0.0
    score = 0.0

    for question in snapshot.get('questions', []):
        points = float(question.get('points') or 0)
        answer = answers.get(question['id'])
        earned = points if is_answer_correct(question, answer) else 0.0
        max_score += points
        score += earned
        outcomes.append(
            QuestionOutcome(question_id=question['id'], points=points, earned=earned, answered=answer is not None)
        )

    score_percent = (score / max_score) * 100 if max_score > 0 else 0.0
    # Compared without division so scores exactly on the threshold pass.
    passing_score = float(snapshot.get('passing_score') or 0)
    passed = max_score > 0 and score * 100 >= passing_score * max_score

    return ScoreResult(
        score=score,
        max_score=max_score,
        score_percent=round(score_percent, 4),
        passed=passed,
        outcomes=outcomes,
    )
