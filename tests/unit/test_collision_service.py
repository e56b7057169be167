"""Tests for polymap.services.collision_service."""

import pytest

from polymap.services.collision_service import LabelBox, LabelIndex


class TestLabelBox:
    def test_around_rotated_corners(self):
        box = LabelBox.around([(1, 5), (4, 2), (7, 5), (4, 8)])
        assert box.as_tuple() == (1, 2, 7, 8)
        assert box.width == 6
        assert box.height == 6
        assert box.center == (4.0, 5.0)

    def test_overlapping(self):
        assert LabelBox(0, 0, 10, 10).intersects(LabelBox(5, 5, 15, 15))

    def test_contained(self):
        assert LabelBox(0, 0, 10, 10).intersects(LabelBox(2, 2, 3, 3))

    @pytest.mark.parametrize(
        "other",
        [LabelBox(10, 0, 20, 10), LabelBox(0, 10, 10, 20), LabelBox(20, 20, 30, 30)],
    )
    def test_touching_or_apart_do_not_intersect(self, other):
        assert not LabelBox(0, 0, 10, 10).intersects(other)

    def test_overlap_on_one_axis_only(self):
        assert not LabelBox(0, 0, 10, 10).intersects(LabelBox(5, 11, 15, 20))


class TestLabelIndex:
    def test_empty_index_allows_anything(self):
        index = LabelIndex()
        assert len(index) == 0
        assert index.can_place("A", (0, 0), LabelBox(0, 0, 1, 1), 100)

    def test_collision(self):
        index = LabelIndex()
        index.add("A", (5, 5), LabelBox(0, 0, 10, 10))
        assert index.collides(LabelBox(9, 9, 12, 12))
        assert not index.collides(LabelBox(11, 11, 12, 12))

    def test_same_text_spacing(self):
        index = LabelIndex()
        index.add("Main St", (0, 0), LabelBox(-5, -5, 5, 5))
        assert index.too_close("Main St", (30, 40), 60)
        assert not index.too_close("Main St", (30, 40), 50)
        assert not index.too_close("Other St", (1, 1), 60)

    def test_can_place_checks_both(self):
        index = LabelIndex()
        index.add("Main St", (0, 0), LabelBox(-5, -5, 5, 5))
        far_box = LabelBox(100, 100, 110, 110)
        assert not index.can_place("Main St", (10, 0), far_box, 50)
        assert index.can_place("Main St", (200, 0), far_box, 50)
        assert not index.can_place("Other", (0, 0), LabelBox(0, 0, 1, 1), 50)
        assert len(index) == 1
