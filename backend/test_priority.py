"""Tests for priority models and priority-line parsing."""
import pytest

from errors import DirectiveParseError, PriorityConfigError
from priority import (
    DEFAULT_STATIC_PRIORITY,
    DynamicPriority,
    StaticPriority,
    evaluate_priority,
    is_time_dependent,
    parse_priority_line,
)


class TestStaticPriority:
    """Static priorities ignore elapsed time and execution history."""

    @pytest.mark.parametrize("elapsed", [0.0, 1.5, 100.0])
    @pytest.mark.parametrize("executed", [True, False])
    def test_returns_configured_value(self, elapsed, executed):
        assert StaticPriority(4).evaluate(elapsed, executed) == 4

    def test_default_is_ten(self):
        assert StaticPriority().value == 10

    @pytest.mark.parametrize("value", [0, 11, -3])
    def test_out_of_range_rejected(self, value):
        with pytest.raises(PriorityConfigError):
            StaticPriority(value)


class TestDynamicPriority:
    """Dynamic priorities follow a linear curve inside their window."""

    def setup_method(self):
        self.model = DynamicPriority(start_time=2, end_time=10, start_priority=10, end_priority=1, default_priority=5)

    def test_not_executed_uses_default(self):
        for elapsed in (0.0, 2.0, 6.0, 10.0, 50.0):
            assert self.model.evaluate(elapsed, False) == 5

    def test_window_edges(self):
        assert self.model.evaluate(2, True) == 10
        assert self.model.evaluate(10, True) == 1

    def test_interpolates_and_rounds(self):
        # 10 + (1 - 10) * 4 / 8 = 5.5
        assert self.model.evaluate(6, True) == 6

    def test_outside_window_uses_default(self):
        assert self.model.evaluate(1, True) == 5
        assert self.model.evaluate(11, True) == 5

    def test_rising_curve(self):
        model = DynamicPriority(0, 4, 1, 9, 3)
        assert model.evaluate(0, True) == 1
        assert model.evaluate(2, True) == 5
        assert model.evaluate(4, True) == 9

    def test_empty_window_rejected(self):
        with pytest.raises(PriorityConfigError):
            DynamicPriority(5, 5, 1, 2, 3)

    @pytest.mark.parametrize("start, end", [(float("nan"), 10), (0, float("nan")), (0, float("inf"))])
    def test_non_finite_window_rejected(self, start, end):
        with pytest.raises(PriorityConfigError):
            DynamicPriority(start, end, 10, 1)

    def test_reversed_window_rejected(self):
        with pytest.raises(PriorityConfigError):
            DynamicPriority(6, 5, 1, 2, 3)

    def test_priority_out_of_range_rejected(self):
        with pytest.raises(PriorityConfigError):
            DynamicPriority(0, 5, 0, 2, 3)
        with pytest.raises(PriorityConfigError):
            DynamicPriority(0, 5, 1, 2, 12)


class TestEvaluatePriority:
    """Tests for the model-agnostic helpers."""

    def test_dispatches_both_variants(self):
        assert evaluate_priority(StaticPriority(3), 9.0, True) == 3
        assert evaluate_priority(DynamicPriority(0, 2, 8, 2, 7), 1.0, True) == 5

    def test_unknown_model_raises(self):
        with pytest.raises(TypeError):
            evaluate_priority(object(), 0.0, False)
        with pytest.raises(TypeError):
            is_time_dependent("5")

    def test_only_dynamic_is_time_dependent(self):
        assert is_time_dependent(StaticPriority(2)) is False
        assert is_time_dependent(DynamicPriority(0, 1, 1, 2, 3)) is True


class TestParsePriorityLine:
    """Tests for the second line of a directive file."""

    def test_empty_line_is_static_ten(self):
        assert parse_priority_line("") == StaticPriority(DEFAULT_STATIC_PRIORITY)
        assert parse_priority_line("   ") == StaticPriority(DEFAULT_STATIC_PRIORITY)

    def test_static(self):
        assert parse_priority_line("3") == StaticPriority(3)
        assert parse_priority_line(" 7 ") == StaticPriority(7)

    @pytest.mark.parametrize("line", ["0", "11", "99"])
    def test_static_out_of_range_falls_back(self, line):
        assert parse_priority_line(line) == StaticPriority(10)

    def test_dynamic_five_fields(self):
        assert parse_priority_line("2-10-10-1-5") == DynamicPriority(2.0, 10.0, 10, 1, 5)

    def test_dynamic_four_fields_defaults_to_one(self):
        assert parse_priority_line("1.5-6-8-2") == DynamicPriority(1.5, 6.0, 8, 2, 1)

    def test_dynamic_reversed_window_falls_back(self):
        assert parse_priority_line("10-2-1-5") == StaticPriority(10)

    def test_dynamic_out_of_range_falls_back(self):
        assert parse_priority_line("2-10-0-5") == StaticPriority(10)
        assert parse_priority_line("2-10-3-5-11") == StaticPriority(10)

    def test_dynamic_empty_window_rejected(self):
        with pytest.raises(PriorityConfigError):
            parse_priority_line("5-5-1-2")

    @pytest.mark.parametrize("line", ["abc", "1-2-3", "1-2-3-4-5-6", "a-2-3-4", "1-2-x-4", "e, q"])
    def test_bad_syntax_raises(self, line):
        with pytest.raises(DirectiveParseError):
            parse_priority_line(line)

    @pytest.mark.parametrize("line", ["nan-10-10-1-5", "0-nan-10-1", "0-inf-10-1", "nan-nan-1-2"])
    def test_non_finite_window_raises(self, line):
        with pytest.raises(DirectiveParseError):
            parse_priority_line(line)
