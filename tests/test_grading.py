import pytest

from physics_practice.core.errors import ValidationFailure
from physics_practice.services.grading import check_answer, parse_answer


def test_exact_answer_is_correct():
    result = check_answer(10.0, 10.0, 2)
    assert result.is_correct is True
    assert result.percent_diff == 0


def test_within_tolerance_is_correct():
    result = check_answer(10.19, 10.0, 2)
    assert result.is_correct is True
    assert result.percent_diff == pytest.approx(1.9)


def test_boundary_is_inclusive():
    assert check_answer(10.2, 10.0, 2.0000001).is_correct is True


def test_outside_tolerance_is_incorrect():
    result = check_answer(15.0, 10.0, 2)
    assert result.is_correct is False
    assert result.percent_diff == pytest.approx(50)


def test_negative_reference_uses_absolute_value():
    result = check_answer(-9.9, -10.0, 2)
    assert result.is_correct is True
    assert result.percent_diff == pytest.approx(1)


@pytest.mark.parametrize(
    "user_answer, expected",
    [(0.005, True), (-0.01, True), (0.0, True), (0.02, False), (-0.5, False)],
)
def test_zero_reference_uses_absolute_tolerance(user_answer, expected):
    result = check_answer(user_answer, 0.0, 2)
    assert result.is_correct is expected
    assert result.percent_diff == 0


@pytest.mark.parametrize("raw, expected", [(12, 12.0), (1.5, 1.5), ("3.25", 3.25), (" -4e2 ", -400.0)])
def test_parse_answer_accepts_numbers(raw, expected):
    assert parse_answer(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "abc", "1/2", True, "nan", "inf", [1]])
def test_parse_answer_rejects_garbage(raw):
    with pytest.raises(ValidationFailure):
        parse_answer(raw)


def test_unparseable_answer_keeps_the_conversion_error():
    with pytest.raises(ValidationFailure) as exc_info:
        parse_answer("abc")
    assert isinstance(exc_info.value.__cause__, ValueError)
