"""
Unit tests for autodim.projection.view_projector module.

Tests:
- View type parsing
- Plan and section projection
- Degenerate directions
- Round trip view -> 3D -> view
"""

import numpy as np

from autodim.projection.view_projector import (
    ViewContext,
    ViewType,
    is_dimensionable_view,
    project_direction,
    project_point,
    view_direction_to_3d,
    view_plane_normal,
    view_plane_origin,
    view_point_to_3d,
)
from tests.conftest import assert_vec_approx


class TestViewType:
    """Tests for ViewType parsing."""

    def test_parse_host_names(self):
        assert ViewType.parse("FloorPlan") is ViewType.FLOOR_PLAN
        assert ViewType.parse("CeilingPlan") is ViewType.CEILING_PLAN

    def test_parse_snake_case(self):
        assert ViewType.parse("floor_plan") is ViewType.FLOOR_PLAN
        assert ViewType.parse("section") is ViewType.SECTION

    def test_parse_unknown_host_type(self):
        """Host view types outside the enum load as OTHER."""
        assert ViewType.parse("ThreeD") is ViewType.OTHER
        assert ViewType.parse("DraftingView") is ViewType.OTHER
        assert not is_dimensionable_view(ViewContext(name="{3D}", view_type="ThreeD"))

    def test_plan_flags(self):
        assert ViewType.AREA_PLAN.is_plan
        assert not ViewType.SECTION.is_plan
        assert ViewType.ELEVATION.is_section_like
        assert not ViewType.DETAIL.is_section_like


class TestProjection:
    """Tests for forward projection."""

    def test_plan_drops_z(self, plan_view):
        assert_vec_approx(project_point((3.0, 4.0, 12.0), plan_view), (3.0, 4.0))

    def test_section_uses_basis(self, section_view):
        assert_vec_approx(project_point((3.0, 7.0, 12.0), section_view), (3.0, 12.0))

    def test_section_relative_to_origin(self):
        view = ViewContext(name="S", view_type="Section", origin=(10, 0, 5),
                           right=(1, 0, 0), up=(0, 0, 1), view_direction=(0, 1, 0))
        assert_vec_approx(project_point((13.0, 2.0, 6.0), view), (3.0, 1.0))

    def test_direction_normalized(self, plan_view):
        d = project_direction((3.0, 4.0, 0.0), plan_view)
        assert_vec_approx(d, (0.6, 0.8))

    def test_vertical_direction_in_plan_is_none(self, plan_view):
        """A direction along the view normal has no 2D direction."""
        assert project_direction((0.0, 0.0, 1.0), plan_view) is None

    def test_detail_projects_like_plan(self):
        view = ViewContext(name="D", view_type=ViewType.DETAIL)
        assert view.projects_like_plan
        assert_vec_approx(project_point((1.0, 2.0, 3.0), view), (1.0, 2.0))

    def test_basis_normalized(self):
        view = ViewContext(name="S", view_type="Elevation", right=(2, 0, 0), up=(0, 0, 5))
        assert_vec_approx(view.right, (1, 0, 0))
        assert_vec_approx(view.up, (0, 0, 1))


class TestViewPlane:
    """Tests for the view plane used by the perpendicular classifier."""

    def test_plan_normal_is_z(self, plan_view):
        assert_vec_approx(view_plane_normal(plan_view), (0, 0, 1))

    def test_section_normal_is_view_direction(self, section_view):
        assert_vec_approx(view_plane_normal(section_view), (0, 1, 0))

    def test_plan_origin_at_level(self):
        view = ViewContext(name="L2", view_type="FloorPlan", level_elevation=12.0)
        assert_vec_approx(view_plane_origin(view), (0, 0, 12.0))


class TestRoundTrip:
    """Tests for view -> 3D conversion."""

    def test_plan_round_trip(self):
        view = ViewContext(name="L2", view_type="FloorPlan", level_elevation=12.0)
        p3 = view_point_to_3d((4.5, -2.0), view)
        assert_vec_approx(p3, (4.5, -2.0, 12.0))
        assert_vec_approx(project_point(p3, view), (4.5, -2.0))

    def test_section_round_trip(self, section_view):
        for p in [(0.0, 0.0), (3.25, -1.5), (100.0, 42.0)]:
            p3 = view_point_to_3d(p, section_view)
            assert_vec_approx(project_point(p3, section_view), p)

    def test_direction_to_3d(self, section_view):
        assert_vec_approx(view_direction_to_3d((0.0, 1.0), section_view), (0, 0, 1))

    def test_degenerate_direction_falls_back(self, plan_view):
        assert_vec_approx(view_direction_to_3d((0.0, 0.0), plan_view), (1, 0, 0))


class TestDimensionableView:
    """Tests for is_dimensionable_view."""

    def test_plan_dimensionable(self, plan_view):
        assert is_dimensionable_view(plan_view)

    def test_template_skipped(self):
        view = ViewContext(name="T", is_template=True)
        assert not is_dimensionable_view(view)

    def test_other_type_skipped(self):
        view = ViewContext(name="3D", view_type=ViewType.OTHER)
        assert not is_dimensionable_view(view)
