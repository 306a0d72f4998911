"""Tests for line normalization, progress clamping and board lanes."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from quartermaster.domain.enums import Lane, OrderStatus
from quartermaster.domain.errors import ValidationError
from quartermaster.domain.orders import (
    LineRequest,
    canonical_status,
    clamp_progress,
    is_fully_done,
    lane_for_status,
    normalize_lines,
    parse_order_status,
    progress_percent,
    require_int,
    summarize_lines,
)


class TestNormalizeLines:
    def test_duplicates_are_summed_into_one_line(self):
        lines = normalize_lines([LineRequest(1, 10), LineRequest(2, 3), LineRequest(1, 5)])
        assert lines == [LineRequest(1, 15), LineRequest(2, 3)]

    def test_non_positive_lines_are_dropped(self):
        lines = normalize_lines([LineRequest(1, 0), LineRequest(2, -4), LineRequest(4, 2)])
        assert lines == [LineRequest(4, 2)]

    @pytest.mark.parametrize(
        ("line", "message"),
        [
            (LineRequest("1.7", 2), "item_id must be an integer"),
            (LineRequest(1.7, 2), "item_id must be an integer"),
            (LineRequest(1, 2.99), "qty_required must be an integer"),
            (LineRequest(None, 2), "item_id is required"),
            (LineRequest(True, 2), "item_id must be an integer"),
        ],
    )
    def test_non_integral_values_are_rejected(self, line, message):
        with pytest.raises(ValidationError, match=message):
            normalize_lines([line])

    def test_empty_input_yields_nothing(self):
        assert normalize_lines([]) == []

    @given(
        st.lists(
            st.tuples(st.integers(min_value=1, max_value=5), st.integers(-10, 50)),
            max_size=30,
        )
    )
    def test_one_line_per_item_with_positive_totals(self, pairs):
        lines = normalize_lines(LineRequest(item_id, qty) for item_id, qty in pairs)

        item_ids = [line.item_id for line in lines]
        assert len(item_ids) == len(set(item_ids))
        for line in lines:
            expected = sum(qty for item_id, qty in pairs if item_id == line.item_id and qty > 0)
            assert line.qty_required == expected > 0


class TestClampProgress:
    def test_over_request_is_capped(self):
        assert clamp_progress(150, 100) == 100

    def test_negative_request_becomes_zero(self):
        assert clamp_progress(-3, 100) == 0

    @given(st.integers(-(10**6), 10**6), st.integers(1, 10**4))
    def test_result_always_within_bounds(self, requested, required):
        result = clamp_progress(requested, required)
        assert 0 <= result <= required
        if 0 <= requested <= required:
            assert result == requested


class TestParsing:
    def test_require_int_passes_integers_through(self):
        assert require_int(12, field="qty_done") == 12
        assert require_int(-3, field="qty_done") == -3

    @pytest.mark.parametrize("value", ["12", 12.0, 4.99, True, float("nan")])
    def test_require_int_rejects_everything_else(self, value):
        with pytest.raises(ValidationError, match="qty_done must be an integer"):
            require_int(value, field="qty_done")

    def test_require_int_reports_missing_values(self):
        with pytest.raises(ValidationError, match="war_id is required"):
            require_int(None, field="war_id")

    def test_canonical_status_resolves_alias(self):
        assert canonical_status(" Producing ") == "in_progress"
        assert canonical_status("READY") == "ready"

    def test_producing_alias_maps_to_in_progress(self):
        assert parse_order_status("Producing") == OrderStatus.IN_PROGRESS

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValidationError, match="Invalid status"):
            parse_order_status("shipped")


@pytest.mark.parametrize(
    ("status", "lane"),
    [
        ("open", Lane.QUEUED),
        ("", Lane.QUEUED),
        (None, Lane.QUEUED),
        ("in_progress", Lane.PRODUCING),
        ("working", Lane.PRODUCING),
        ("STAGED", Lane.READY),
        ("done", Lane.COMPLETE),
        ("something-new", Lane.QUEUED),
        ("cancelled", None),
    ],
)
def test_lane_for_status(status, lane):
    assert lane_for_status(status) == lane


def test_summary_uses_first_three_lines_by_name():
    names = {1: "Shell", 2: "Bandage", 3: "Rifle", 4: "Mortar"}
    lines = [LineRequest(1, 5), LineRequest(2, 10), LineRequest(3, 2), LineRequest(4, 1)]
    assert summarize_lines(lines, names) == "10x Bandage • 1x Mortar • 2x Rifle"


def test_summary_falls_back_without_names():
    assert summarize_lines([LineRequest(9, 1)], {}) == "Production order"


def test_progress_percent():
    assert progress_percent(0, 0) == 0
    assert progress_percent(1, 3) == 33
    assert progress_percent(5, 4) == 100


def test_is_fully_done_requires_lines():
    assert not is_fully_done([])
    assert is_fully_done([(5, 5), (3, 2)])
    assert not is_fully_done([(5, 5), (4, 5)])
