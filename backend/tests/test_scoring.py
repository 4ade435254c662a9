import pytest

from app.services.response_validator import OptionSetAnswer, SingleOptionAnswer
from app.services.scoring_service import is_answer_correct, score_attempt


def _snapshot(passing_score: float = 70) -> dict:
    return {
        'quiz_id': 'quiz-1',
        'passing_score': passing_score,
        'time_limit_minutes': None,
        'questions': [
            {
                'id': 'q-choice',
                'question_type': 'multiple_choice',
                'points': 10,
                'options': [
                    {'id': 'c-right', 'is_correct': True},
                    {'id': 'c-wrong', 'is_correct': False},
                ],
            },
            {
                'id': 'q-select',
                'question_type': 'multiple_select',
                'points': 10,
                'options': [
                    {'id': 's-a', 'is_correct': True},
                    {'id': 's-b', 'is_correct': True},
                    {'id': 's-c', 'is_correct': False},
                ],
            },
        ],
    }


def test_all_correct_answers_pass() -> None:
    result = score_attempt(
        _snapshot(),
        {
            'q-choice': SingleOptionAnswer('c-right'),
            'q-select': OptionSetAnswer(frozenset({'s-a', 's-b'})),
        },
    )

    assert result.score == 20
    assert result.max_score == 20
    assert result.score_percent == 100.0
    assert result.passed is True
    assert result.correct_count == 2


def test_half_correct_fails_below_passing_score() -> None:
    result = score_attempt(
        _snapshot(),
        {
            'q-choice': SingleOptionAnswer('c-right'),
            'q-select': OptionSetAnswer(frozenset({'s-a'})),
        },
    )

    assert result.score == 10
    assert result.max_score == 20
    assert result.score_percent == 50.0
    assert result.passed is False


def test_multiple_select_is_all_or_nothing() -> None:
    question = _snapshot()['questions'][1]

    assert is_answer_correct(question, OptionSetAnswer(frozenset({'s-a', 's-b'})))
    assert not is_answer_correct(question, OptionSetAnswer(frozenset({'s-a'})))
    assert not is_answer_correct(question, OptionSetAnswer(frozenset({'s-a', 's-b', 's-c'})))
    assert not is_answer_correct(question, SingleOptionAnswer('s-a'))


def test_unanswered_questions_score_zero() -> None:
    result = score_attempt(_snapshot(), {})

    assert result.score == 0
    assert result.max_score == 20
    assert result.passed is False
    assert all(not outcome.answered for outcome in result.outcomes)


def test_passing_score_boundary_is_inclusive() -> None:
    result = score_attempt(_snapshot(passing_score=50), {'q-choice': SingleOptionAnswer('c-right')})

    assert result.score_percent == 50.0
    assert result.passed is True


def test_zero_point_quiz_never_passes() -> None:
    result = score_attempt({'passing_score': 0, 'questions': []}, {})

    assert result.max_score == 0
    assert result.score_percent == 0.0
    assert result.passed is False


def test_answers_for_unknown_questions_are_ignored() -> None:
    result = score_attempt(
        _snapshot(),
        {'q-choice': SingleOptionAnswer('c-right'), 'q-removed': SingleOptionAnswer('x')},
    )

    assert result.score == 10
    assert set(result.outcomes_by_question) == {'q-choice', 'q-select'}


@pytest.mark.parametrize('threshold', [29, 57])
def test_score_exactly_on_threshold_passes(threshold: int) -> None:
    snapshot = {
        'passing_score': threshold,
        'questions': [
            {
                'id': 'q-hit',
                'question_type': 'multiple_choice',
                'points': threshold,
                'options': [{'id': 'hit', 'is_correct': True}, {'id': 'miss', 'is_correct': False}],
            },
            {
                'id': 'q-rest',
                'question_type': 'multiple_choice',
                'points': 100 - threshold,
                'options': [{'id': 'rest', 'is_correct': True}, {'id': 'other', 'is_correct': False}],
            },
        ],
    }

    result = score_attempt(snapshot, {'q-hit': SingleOptionAnswer('hit')})

    assert result.score == threshold
    assert result.max_score == 100
    assert result.score_percent == float(threshold)
    assert result.passed is True


def test_score_just_below_threshold_fails() -> None:
    result = score_attempt(
        {
            'passing_score': 57.5,
            'questions': [
                {'id': 'a', 'question_type': 'true_false', 'points': 57, 'options': [{'id': 'y', 'is_correct': True}]},
                {'id': 'b', 'question_type': 'true_false', 'points': 43, 'options': [{'id': 'n', 'is_correct': True}]},
            ],
        },
        {'a': SingleOptionAnswer('y')},
    )

    assert result.passed is False
