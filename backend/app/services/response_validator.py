"""Turn raw submitted answers into typed answers for a question.

A question's type decides which answer variant is acceptable:

* ``multiple_choice`` / ``true_false`` -> :class:`SingleOptionAnswer`
* ``multiple_select`` -> :class:`OptionSetAnswer`

Shape is checked once here; the scoring engine only ever sees the typed
variants and never inspects raw payloads.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from app.core.exceptions import InvalidResponseShapeError
from app.models.constants import QUESTION_TYPE_MULTIPLE_SELECT, SINGLE_ANSWER_QUESTION_TYPES


@dataclass(frozen=True)
class SingleOptionAnswer:
    option_id: str

    @property
    def option_ids(self) -> frozenset[str]:
        return frozenset({self.option_id})


@dataclass(frozen=True)
class OptionSetAnswer:
    option_ids: frozenset[str]


Answer = SingleOptionAnswer | OptionSetAnswer


def validate_answer(question: dict[str, Any], raw_option_ids: Sequence[UUID | str]) -> Answer:
    """Check ``raw_option_ids`` against a snapshot question and return the typed answer."""
    question_id = question['id']
    question_type = question['question_type']
    selected = [str(option_id) for option_id in raw_option_ids]
    known = {option['id'] for option in question.get('options', [])}

    unknown = [option_id for option_id in selected if option_id not in known]
    if unknown:
        raise InvalidResponseShapeError(
            'Selected options do not belong to this question',
            question_id=question_id,
            reason='unknown_option',
            option_ids=unknown,
        )

    if question_type in SINGLE_ANSWER_QUESTION_TYPES:
        if len(selected) != 1:
            raise InvalidResponseShapeError(
                'Exactly one option must be selected for this question type',
                question_id=question_id,
                question_type=question_type,
                reason='expected_single_option',
            )
        return SingleOptionAnswer(option_id=selected[0])

    if question_type == QUESTION_TYPE_MULTIPLE_SELECT:
        if not selected:
            raise InvalidResponseShapeError(
                'At least one option must be selected for this question type',
                question_id=question_id,
                question_type=question_type,
                reason='empty_selection',
            )
        if len(set(selected)) != len(selected):
            raise InvalidResponseShapeError(
                'Selected options must not contain duplicates',
                question_id=question_id,
                question_type=question_type,
                reason='duplicate_options',
            )
        return OptionSetAnswer(option_ids=frozenset(selected))

    raise InvalidResponseShapeError(
        'Unsupported question type',
        question_id=question_id,
        question_type=question_type,
        reason='unsupported_question_type',
    )


def answer_to_storage(answer: Answer) -> list[str]:
    return sorted(answer.option_ids)


def answer_from_storage(question_type: str, stored: Iterable[str]) -> Answer | None:
    # Rows are only written after validate_answer, so no shape checks here.
    option_ids = [str(option_id) for option_id in stored]
    if not option_ids:
        return None
    if question_type in SINGLE_ANSWER_QUESTION_TYPES:
        return SingleOptionAnswer(option_id=option_ids[0])
    return OptionSetAnswer(option_ids=frozenset(option_ids))
