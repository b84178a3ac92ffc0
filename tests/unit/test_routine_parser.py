import pytest

from app.core.errors import AnswerCountMismatch, MalformedRoutineOutput
from app.services.routine import parse_routine_tasks, strip_code_fence, validate_answers


def test_strip_code_fence_with_language_tag() -> None:
    assert strip_code_fence('```json\n["Wake at 7am","Drink water"]\n```') == '["Wake at 7am","Drink water"]'


def test_strip_code_fence_without_language_tag() -> None:
    assert strip_code_fence('```\n["a"]\n```') == '["a"]'


def test_strip_code_fence_leaves_inner_fences() -> None:
    assert strip_code_fence('["a ``` b"]') == '["a ``` b"]'


def test_fenced_and_plain_parse_identically() -> None:
    fenced = parse_routine_tasks('```json\n["Wake at 7am","Drink water"]\n```')
    plain = parse_routine_tasks('["Wake at 7am","Drink water"]')
    assert fenced == plain == ["Wake at 7am", "Drink water"]


@pytest.mark.parametrize(
    "raw",
    [
        '{"a":1}',
        '["x", 2]',
        '[["nested"]]',
        "Wake at 7am\nDrink water",
        '["unterminated"',
        "",
        pytest.param("[" * 100000 + "]" * 100000, id="deeply-nested"),
    ],
)
def test_parse_rejects_wrong_shapes(raw: str) -> None:
    with pytest.raises(MalformedRoutineOutput) as exc_info:
        parse_routine_tasks(raw)
    assert exc_info.value.details == "Invalid response format from AI model"


def test_validate_answers_requires_ten_strings() -> None:
    answers = [f"answer {index}" for index in range(10)]
    assert validate_answers(answers) == answers
    for bad in (answers[:9], answers + ["extra"], None, "ten answers", answers[:9] + [7]):
        with pytest.raises(AnswerCountMismatch):
            validate_answers(bad)
