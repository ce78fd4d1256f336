"""
Unit tests for autodim.chains.composer module.

Tests:
- Dimension line position, offset and extension
- Minimum span correction
- Pick-line offset clamping
- Conversion back to 3D
- Lateral nudge
"""

from dataclasses import replace

import numpy as np
import pytest

from autodim.chains.composer import ChainGeometry, compose_chain, nudge_chains
from autodim.config import AUTO_EXTENSION, DEFAULT_OFFSET, NUDGE_DISTANCE
from autodim.items import ElementKind, ProjectedItem, ReferenceType
from autodim.projection.view_projector import ViewContext, project_point
from tests.conftest import assert_vec_approx, item


X = np.array([1.0, 0.0])
Y = np.array([0.0, 1.0])


class TestComposeChain:
    """Tests for compose_chain in automatic mode."""

    def test_needs_two_representatives(self, plan_view, settings):
        assert compose_chain(X, [item(1, (0, 0))], plan_view, settings) is None
        assert compose_chain(X, [], plan_view, settings) is None

    def test_two_columns(self, plan_view, settings):
        chain = compose_chain(X, [item(2, (6, 0)), item(1, (0, 0))], plan_view, settings)
        assert isinstance(chain, ChainGeometry)
        # Ordered by position along the chain direction
        assert chain.references == ("1:centerline", "2:centerline")
        assert chain.segment_values == pytest.approx([6.0])
        assert_vec_approx(chain.start, (-AUTO_EXTENSION, DEFAULT_OFFSET))
        assert_vec_approx(chain.end, (6 + AUTO_EXTENSION, DEFAULT_OFFSET))
        assert chain.offset == pytest.approx(DEFAULT_OFFSET)

    def test_3d_endpoints_on_level(self, settings):
        view = ViewContext(name="L2", view_type="FloorPlan", level_elevation=12.0)
        chain = compose_chain(X, [item(1, (0, 0)), item(2, (6, 0))], view, settings)
        assert chain.start3d[2] == pytest.approx(12.0)
        assert chain.end3d[2] == pytest.approx(12.0)
        assert_vec_approx(chain.direction3d, (1, 0, 0))
        assert chain.length == pytest.approx(6 + 2 * AUTO_EXTENSION)

    def test_section_round_trip(self, section_view, settings):
        chain = compose_chain(X, [item(1, (0, 3)), item(2, (8, 3))], section_view, settings)
        assert_vec_approx(project_point(chain.start3d, section_view), chain.start)
        assert_vec_approx(project_point(chain.end3d, section_view), chain.end)
        assert_vec_approx(chain.direction3d, (1, 0, 0))

    def test_span_correction(self, plan_view, settings):
        """Parallel walls along the chain direction share one position."""
        walls = [item(1, (0, 5), (0, 1)), item(2, (5, 5), (0, 1))]
        chain = compose_chain(Y, walls, plan_view, settings)
        assert chain.min_position == pytest.approx(4.5)
        assert chain.max_position == pytest.approx(5.5)
        assert chain.span == pytest.approx(1.0)

    def test_offset_along_perpendicular_of_centroid(self, plan_view, settings):
        chain = compose_chain(X, [item(1, (0, 2)), item(2, (6, 4))], plan_view, settings)
        # Centroid y = 3, perpendicular of +X is +Y
        assert chain.start[1] == pytest.approx(3 + DEFAULT_OFFSET)
        assert chain.start[1] == pytest.approx(chain.end[1])

    def test_dropped_representative_does_not_move_line(self, plan_view, settings):
        """Only representatives that keep a reference position the line."""
        face_only = ProjectedItem(element_id=3, kind=ElementKind.ELEMENT,
                                  projected_point=np.array([3.0, 30.0]), is_point_element=True,
                                  reference_exterior_face="3:exterior")
        chain = compose_chain(X, [item(1, (0, 2)), face_only, item(2, (6, 4))], plan_view, settings)
        assert chain.references == ("1:centerline", "2:centerline")
        assert chain.start[1] == pytest.approx(3 + DEFAULT_OFFSET)

    def test_custom_offset(self, plan_view, settings):
        chain = compose_chain(X, [item(1, (0, 0)), item(2, (6, 0))], plan_view,
                              replace(settings, default_offset=4.0))
        assert chain.start[1] == pytest.approx(4.0)

    def test_missing_references_drop_chain(self, plan_view, settings):
        face_only = [
            ProjectedItem(element_id=i, kind=ElementKind.ELEMENT, projected_point=np.array([i * 3.0, 0.0]),
                          is_point_element=True, reference_exterior_face=f"{i}:exterior")
            for i in range(2)
        ]
        assert compose_chain(X, face_only, plan_view, settings) is None
        chain = compose_chain(X, face_only, plan_view,
                              replace(settings, reference_type=ReferenceType.EXTERIOR_FACE))
        assert chain.references == ("0:exterior", "1:exterior")

    def test_degenerate_direction(self, plan_view, settings):
        chain = compose_chain(np.zeros(2), [item(1, (0, 0)), item(2, (6, 0))], plan_view, settings)
        assert_vec_approx(chain.direction, (1, 0))


class TestPickLine:
    """Tests for compose_chain with a pick line."""

    def test_offset_clamped_to_minimum(self, plan_view, settings):
        pick = (np.array([0.0, 1.0]), np.array([6.0, 1.0]))
        chain = compose_chain(X, [item(1, (0, 0)), item(2, (6, 0))], plan_view, settings, pick_line=pick)
        assert chain.offset == pytest.approx(3.0)
        # Extension: max(10% of 6, 3.0)
        assert_vec_approx(chain.start, (-3.0, 3.0))
        assert_vec_approx(chain.end, (9.0, 3.0))

    def test_offset_sign_preserved(self, plan_view, settings):
        pick = (np.array([0.0, -1.0]), np.array([6.0, -1.0]))
        chain = compose_chain(X, [item(1, (0, 0)), item(2, (6, 0))], plan_view, settings, pick_line=pick)
        assert chain.offset == pytest.approx(-3.0)

    def test_far_pick_line(self, plan_view, settings):
        pick = (np.array([0.0, 10.0]), np.array([6.0, 10.0]))
        chain = compose_chain(X, [item(1, (0, 0)), item(2, (6, 0))], plan_view, settings, pick_line=pick)
        assert chain.offset == pytest.approx(10.0)

    def test_long_chain_extension_ratio(self, plan_view, settings):
        pick = (np.array([0.0, 5.0]), np.array([60.0, 5.0]))
        chain = compose_chain(X, [item(1, (0, 0)), item(2, (60, 0))], plan_view, settings, pick_line=pick)
        assert chain.start[0] == pytest.approx(-6.0)


class TestNudge:
    """Tests for nudge_chains."""

    def test_nudge_moves_left(self, plan_view, settings):
        chain = compose_chain(X, [item(1, (0, 0)), item(2, (6, 0))], plan_view, settings)
        (moved,) = nudge_chains([chain], plan_view, NUDGE_DISTANCE)
        assert_vec_approx(moved.start - chain.start, (0.0, NUDGE_DISTANCE))
        assert moved.offset == pytest.approx(chain.offset + NUDGE_DISTANCE)
        assert moved.references == chain.references
        assert moved is not chain

    def test_point_on_line(self, plan_view, settings):
        chain = compose_chain(X, [item(1, (0, 0)), item(2, (6, 0))], plan_view, settings)
        assert_vec_approx(chain.point_on_line(2.0), (2.0, DEFAULT_OFFSET))
