"""
Unit tests for autodim.items module.

Tests:
- Reference type parsing
- Tolerance classes
- ProjectedItem invariants
- Reference selection by kind and reference type
"""

import numpy as np
import pytest

from autodim.items import (
    ElementKind,
    ProjectedItem,
    ReferenceType,
    ToleranceClass,
    perpendicular_axis,
    tolerance_class_for,
)
from tests.conftest import assert_vec_approx, item


class TestReferenceType:
    """Tests for ReferenceType.parse."""

    @pytest.mark.parametrize("value", ["exterior_face", "ExteriorFace", "Exterior Face", "EXTERIOR_FACE"])
    def test_parse_variants(self, value):
        assert ReferenceType.parse(value) is ReferenceType.EXTERIOR_FACE

    def test_parse_enum_passthrough(self):
        assert ReferenceType.parse(ReferenceType.AUTO) is ReferenceType.AUTO

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            ReferenceType.parse("core_face")

    def test_describe(self):
        assert ReferenceType.CENTERLINE.describe().startswith("Centerline")


class TestToleranceClass:
    """Tests for tolerance_class_for."""

    def test_grid(self):
        assert tolerance_class_for(ElementKind.GRID, "Grids") is ToleranceClass.GRID

    def test_structural_categories(self):
        for category in ("Structural Framing", "Walls", "Structural Columns", "Beam Systems"):
            assert tolerance_class_for(ElementKind.ELEMENT, category) is ToleranceClass.STRUCTURAL

    def test_structural_before_curtain(self):
        """Category words are checked for structural first: 'wall' wins."""
        assert tolerance_class_for(ElementKind.MULLION, "Curtain Wall Mullions") is ToleranceClass.STRUCTURAL
        assert tolerance_class_for(ElementKind.CURTAIN_WALL, "Walls") is ToleranceClass.STRUCTURAL

    def test_curtain_categories(self):
        assert tolerance_class_for(ElementKind.MULLION, "Mullions") is ToleranceClass.CURTAIN_WALL
        assert tolerance_class_for(ElementKind.ELEMENT, "Curtain Panels") is ToleranceClass.CURTAIN_WALL

    def test_curtain_kind(self):
        assert tolerance_class_for(ElementKind.MULLION, "") is ToleranceClass.CURTAIN_WALL

    def test_default(self):
        assert tolerance_class_for(ElementKind.ELEMENT, "Ducts") is ToleranceClass.DEFAULT


class TestPerpendicularAxis:
    """Tests for perpendicular_axis."""

    def test_rotates_left(self):
        assert_vec_approx(perpendicular_axis(np.array([1.0, 0.0])), (0.0, 1.0))
        assert_vec_approx(perpendicular_axis(np.array([0.0, 1.0])), (-1.0, 0.0))

    def test_degenerate(self):
        assert_vec_approx(perpendicular_axis(np.array([0.0, 0.0])), (0.0, 1.0))


class TestProjectedItem:
    """Tests for ProjectedItem invariants."""

    def test_requires_a_reference(self):
        with pytest.raises(ValueError):
            ProjectedItem(element_id=1, kind=ElementKind.ELEMENT, projected_point=np.zeros(2))

    def test_point_element_has_no_direction(self):
        p = ProjectedItem(
            element_id=1, kind=ElementKind.PERPENDICULAR_ELEMENT,
            projected_point=np.zeros(2), projected_direction=np.array([1.0, 0.0]),
            is_point_element=True, reference_geometric="1",
        )
        assert p.projected_direction is None
        assert not p.is_linear

    def test_point_coerced_to_2d(self):
        p = item(1, (1.0, 2.0, 3.0), (1, 0))
        assert p.projected_point.shape == (2,)

    def test_valid_for_dimensioning(self):
        assert item(1, (0, 0), (1, 0)).is_valid_for_dimensioning()
        assert item(2, (0, 0)).is_valid_for_dimensioning()

    def test_display_name(self):
        p = item(7, (0, 0), (0, 1), kind=ElementKind.MULLION, name="M", parent_wall_id=3)
        assert p.display_name() == "Mullion 7 (M) - Parent: 3"


class TestGetReference:
    """Tests for ProjectedItem.get_reference."""

    def _wall(self, **kwargs):
        return item(1, (0, 0), (0, 1),
                    reference_exterior_face="1:exterior",
                    reference_interior_face="1:interior", **kwargs)

    def test_centerline(self):
        assert self._wall().get_reference(ReferenceType.CENTERLINE) == "1:centerline"

    def test_faces(self):
        w = self._wall()
        assert w.get_reference(ReferenceType.EXTERIOR_FACE) == "1:exterior"
        assert w.get_reference(ReferenceType.INTERIOR_FACE) == "1:interior"

    def test_face_falls_back_to_centerline(self):
        w = item(1, (0, 0), (0, 1))
        assert w.get_reference(ReferenceType.EXTERIOR_FACE) == "1:centerline"

    def test_auto_structural_uses_exterior(self):
        w = self._wall(is_structural=True)
        assert w.get_reference(ReferenceType.AUTO) == "1:exterior"

    def test_auto_plain_uses_centerline(self):
        assert self._wall().get_reference(ReferenceType.AUTO) == "1:centerline"

    def test_grid_uses_geometric(self):
        g = item(5, (0, 0), (1, 0), kind=ElementKind.GRID, selected=False)
        assert g.get_reference(ReferenceType.EXTERIOR_FACE) == "5"

    def test_curtain_grid_line_always_centerline(self):
        g = item(6, (0, 0), (0, 1), kind=ElementKind.CURTAIN_GRID_LINE,
                 reference_exterior_face="6:exterior")
        assert g.get_reference(ReferenceType.EXTERIOR_FACE) == "6:centerline"

    def test_mullion_always_centerline(self):
        m = item(8, (0, 0), (0, 1), kind=ElementKind.MULLION, is_mullion=True,
                 reference_exterior_face="8:exterior")
        assert m.get_reference(ReferenceType.INTERIOR_FACE) == "8:centerline"


class TestAdjustedPoint:
    """Tests for ProjectedItem.adjusted_point."""

    def test_centerline_unchanged(self):
        w = item(1, (2, 0), (0, 1), element_width=1.0)
        assert_vec_approx(w.adjusted_point(ReferenceType.CENTERLINE), (2, 0))

    def test_faces_offset_by_half_width(self):
        w = item(1, (2, 0), (0, 1), element_width=1.0)
        # Left of (0, 1) is -X
        assert_vec_approx(w.adjusted_point(ReferenceType.EXTERIOR_FACE), (1.5, 0))
        assert_vec_approx(w.adjusted_point(ReferenceType.INTERIOR_FACE), (2.5, 0))

    def test_point_element_unchanged(self):
        c = item(1, (2, 0), element_width=1.0)
        assert_vec_approx(c.adjusted_point(ReferenceType.EXTERIOR_FACE), (2, 0))
