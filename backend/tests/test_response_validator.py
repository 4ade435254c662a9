import pytest

from app.core.exceptions import InvalidResponseShapeError
from app.services.response_validator import (
    OptionSetAnswer,
    SingleOptionAnswer,
    answer_from_storage,
    answer_to_storage,
    validate_answer,
)


CHOICE_QUESTION = {
    'id': 'q-1',
    'question_type': 'multiple_choice',
    'options': [{'id': 'a', 'is_correct': True}, {'id': 'b', 'is_correct': False}],
}
SELECT_QUESTION = {
    'id': 'q-2',
    'question_type': 'multiple_select',
    'options': [
        {'id': 'a', 'is_correct': True},
        {'id': 'b', 'is_correct': True},
        {'id': 'c', 'is_correct': False},
    ],
}


def test_single_option_question_yields_single_answer() -> None:
    assert validate_answer(CHOICE_QUESTION, ['b']) == SingleOptionAnswer('b')


def test_single_option_question_rejects_multiple_selections() -> None:
    with pytest.raises(InvalidResponseShapeError) as exc_info:
        validate_answer(CHOICE_QUESTION, ['a', 'b'])

    assert exc_info.value.context['reason'] == 'expected_single_option'
    assert exc_info.value.context['question_id'] == 'q-1'


def test_single_option_question_rejects_empty_selection() -> None:
    with pytest.raises(InvalidResponseShapeError) as exc_info:
        validate_answer({**CHOICE_QUESTION, 'question_type': 'true_false'}, [])

    assert exc_info.value.context['reason'] == 'expected_single_option'


def test_option_set_question_yields_set_answer() -> None:
    answer = validate_answer(SELECT_QUESTION, ['b', 'a'])

    assert answer == OptionSetAnswer(frozenset({'a', 'b'}))
    assert answer_to_storage(answer) == ['a', 'b']


@pytest.mark.parametrize(
    ('selection', 'reason'),
    [
        ([], 'empty_selection'),
        (['a', 'a'], 'duplicate_options'),
        (['a', 'zzz'], 'unknown_option'),
    ],
)
def test_option_set_question_rejects_bad_shapes(selection: list[str], reason: str) -> None:
    with pytest.raises(InvalidResponseShapeError) as exc_info:
        validate_answer(SELECT_QUESTION, selection)

    assert exc_info.value.context['reason'] == reason
    assert exc_info.value.code == 'invalid_response_shape'
    assert exc_info.value.status_code == 422


def test_unknown_option_lists_offending_ids() -> None:
    with pytest.raises(InvalidResponseShapeError) as exc_info:
        validate_answer(CHOICE_QUESTION, ['nope'])

    assert exc_info.value.context['option_ids'] == ['nope']


def test_stored_selection_round_trips_to_typed_answer() -> None:
    assert answer_from_storage('multiple_choice', ['a']) == SingleOptionAnswer('a')
    assert answer_from_storage('multiple_select', ['a', 'b']) == OptionSetAnswer(frozenset({'a', 'b'}))
    assert answer_from_storage('multiple_select', []) is None
