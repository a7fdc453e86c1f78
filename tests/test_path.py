import pytest

from scene_animator.path import (
    ClosePath,
    CubicTo,
    LineTo,
    MoveTo,
    QuadTo,
    cubic_points,
    curve_segments,
    interpret,
    parse_numbers,
    replay,
    tokenize,
)
from scene_animator.surface import Surface


class RecordingSink:
    def __init__(self):
        self.calls = []

    def move_to(self, x, y):
        self.calls.append(("move_to", x, y))

    def line_to(self, x, y):
        self.calls.append(("line_to", x, y))

    def bezier_curve_to(self, x1, y1, x2, y2, x, y):
        self.calls.append(("bezier_curve_to", x1, y1, x2, y2, x, y))

    def quadratic_curve_to(self, x1, y1, x, y):
        self.calls.append(("quadratic_curve_to", x1, y1, x, y))

    def close_path(self):
        self.calls.append(("close_path",))


class TestTokenizer:
    def test_splits_on_command_letters(self):
        assert tokenize("M0 0L10,5z") == [("M", "0 0"), ("L", "10,5"), ("z", "")]

    def test_leading_garbage_dropped(self):
        assert tokenize("  12 M1 2") == [("M", " 1 2")]

    def test_numbers(self):
        assert parse_numbers("-1.5.5e1 +2,3-4") == [-1.5, 5.0, 2.0, 3.0, -4.0]


class TestInterpret:
    def test_closed_triangle(self):
        assert interpret("M0 0 L10 0 L10 10 Z") == [
            MoveTo(0, 0),
            LineTo(10, 0),
            LineTo(10, 10),
            LineTo(0, 0),
            ClosePath(),
        ]

    def test_relative_commands(self):
        ops = interpret("M10 10 l5 0 v5 h-5 z")
        assert ops == [MoveTo(10, 10), LineTo(15, 10), LineTo(15, 15), LineTo(10, 15), LineTo(10, 10), ClosePath()]

    def test_close_resets_cursor_to_subpath_start(self):
        ops = interpret("M5 5 L9 9 Z l1 1")
        assert ops[-1] == LineTo(6, 6)

    def test_insufficient_arguments_is_noop(self):
        assert interpret("M0 0 L5 L3 4") == [MoveTo(0, 0), LineTo(3, 4)]

    def test_only_first_group_honoured(self):
        assert interpret("M0 0 L1 1 2 2 3 3") == [MoveTo(0, 0), LineTo(1, 1)]

    def test_relative_cubic(self):
        assert interpret("M1 1 c1 0 2 1 3 3") == [MoveTo(1, 1), CubicTo(2, 1, 3, 2, 4, 4)]

    def test_smooth_cubic_reflects_previous_control(self):
        ops = interpret("M0 0 C0 10 10 10 10 0 S20 -10 20 0")
        assert ops[-1] == CubicTo(10, -10, 20, -10, 20, 0)

    def test_smooth_cubic_without_previous_curve(self):
        ops = interpret("M0 0 L4 4 S8 0 10 0")
        assert ops[-1] == CubicTo(4, 4, 8, 0, 10, 0)

    def test_smooth_quadratic_reflects_previous_control(self):
        ops = interpret("M0 0 Q5 10 10 0 T20 0")
        assert ops[-2:] == [QuadTo(5, 10, 10, 0), QuadTo(15, -10, 20, 0)]

    def test_smooth_quadratic_after_cubic_is_not_reflected(self):
        ops = interpret("M0 0 C1 1 2 2 3 3 T6 0")
        assert ops[-1] == QuadTo(3, 3, 6, 0)

    def test_arcs_are_skipped(self):
        assert interpret("M0 0 A5 5 0 0 1 10 0 L1 1") == [MoveTo(0, 0), LineTo(1, 1)]

    def test_empty(self):
        assert interpret("") == []


class TestReplay:
    def test_dispatches_each_op(self):
        sink = RecordingSink()
        replay(interpret("M0 0 Q1 1 2 0 C3 3 4 4 5 0 Z"), sink)
        assert [c[0] for c in sink.calls] == [
            "move_to",
            "quadratic_curve_to",
            "bezier_curve_to",
            "line_to",
            "close_path",
        ]

    def test_rendered_bounds_of_closed_triangle(self):
        surface = Surface(20, 20)
        surface.begin_path()
        replay(interpret("M0 0 L10 0 L10 10 Z"), surface)
        assert surface.path_bounds() == (0, 0, 10, 10)


class TestFlattening:
    def test_cubic_ends_exactly_on_endpoint(self):
        points = cubic_points((0, 0), (1, 5), (4, 5), (5, 0), 7)
        assert len(points) == 7
        assert points[-1] == (5, 0)

    def test_cubic_midpoint(self):
        points = cubic_points((0, 0), (0, 10), (10, 10), (10, 0), 2)
        assert points[0] == pytest.approx((5.0, 7.5))

    def test_segment_count_bounds(self):
        assert curve_segments([(0, 0), (1, 0)]) == 4
        assert curve_segments([(0, 0), (10000, 0)]) == 64
        assert curve_segments([(0, 0), (60, 0)]) == 20
