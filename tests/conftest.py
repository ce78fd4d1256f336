"""
Pytest configuration and fixtures for the autodim dimension chain engine.

Provides:
- View fixtures (floor plan, section)
- Element builders for snapshot providers
- Scene snapshot files (JSON) for loader and CLI tests
- Assertion helpers
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pytest

from autodim.items import ElementKind, ProjectedItem
from autodim.project_config import DimensionSettings
from autodim.projection.view_projector import ViewContext, ViewType
from autodim.provider import RawElement, SnapshotProvider

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent


# ============================================================================
# View Fixtures
# ============================================================================

@pytest.fixture
def plan_view() -> ViewContext:
    """Floor plan at elevation 0, looking down."""
    return ViewContext(name="Level 1", view_type=ViewType.FLOOR_PLAN)


@pytest.fixture
def section_view() -> ViewContext:
    """Section looking north: right = +X, up = +Z."""
    return ViewContext(
        name="Section A",
        view_type=ViewType.SECTION,
        origin=np.zeros(3),
        right=np.array([1.0, 0.0, 0.0]),
        up=np.array([0.0, 0.0, 1.0]),
        view_direction=np.array([0.0, 1.0, 0.0]),
    )


@pytest.fixture
def settings() -> DimensionSettings:
    """Default settings without the cosmetic nudge (exact geometry checks)."""
    return DimensionSettings(nudge_chains=False)


# ============================================================================
# Element Builders
# ============================================================================

def wall(element_id, start, end, width: float = 0.0, category: str = "Walls",
         name: str = "", **kwargs) -> RawElement:
    """Linear element (wall, beam...) with a location line."""
    return RawElement(
        element_id=element_id,
        kind=ElementKind.ELEMENT,
        name=name,
        category=category,
        start=np.asarray(start, dtype=float),
        end=np.asarray(end, dtype=float),
        width=width,
        **kwargs,
    )


def grid(element_id, start, end, name: str = "") -> RawElement:
    return RawElement(
        element_id=element_id,
        kind=ElementKind.GRID,
        name=name,
        category="Grids",
        start=np.asarray(start, dtype=float),
        end=np.asarray(end, dtype=float),
    )


def level(element_id, elevation: float, name: str = "") -> RawElement:
    return RawElement(element_id=element_id, kind=ElementKind.LEVEL, name=name,
                      category="Levels", elevation=elevation)


def column(element_id, x: float, y: float, bottom: float = 0.0, top: float = 10.0,
           category: str = "Structural Columns") -> RawElement:
    """Vertical element: degenerates to a point in plan views."""
    return RawElement(
        element_id=element_id,
        kind=ElementKind.ELEMENT,
        category=category,
        start=np.array([x, y, bottom]),
        end=np.array([x, y, top]),
    )


def item(element_id, point, direction=None, kind: ElementKind = ElementKind.ELEMENT,
         selected: bool = True, name: str = "", **kwargs) -> ProjectedItem:
    """ProjectedItem with synthetic references."""
    return ProjectedItem(
        element_id=element_id,
        kind=kind,
        projected_point=np.asarray(point, dtype=float),
        projected_direction=None if direction is None else np.asarray(direction, dtype=float),
        is_point_element=direction is None,
        is_selected=selected,
        reference_centerline=f"{element_id}:centerline",
        reference_geometric=f"{element_id}",
        name=name,
        **kwargs,
    )


@pytest.fixture
def two_walls_provider() -> SnapshotProvider:
    """Two parallel vertical walls at x=0 and x=5."""
    return SnapshotProvider([
        wall(1, (0, 0, 0), (0, 10, 0)),
        wall(2, (5, 0, 0), (5, 10, 0)),
    ])


# ============================================================================
# Scene Snapshot Files
# ============================================================================

def scene_dict(elements: List[Dict[str, Any]], selection: List[Any],
               views: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    if views is None:
        views = [{"name": "Level 1", "view_type": "FloorPlan"}]
    return {"views": views, "elements": elements, "selection": selection}


@pytest.fixture
def simple_scene_data() -> Dict[str, Any]:
    """Plan with three parallel walls, an unrelated grid and a section."""
    return scene_dict(
        elements=[
            {"id": 1, "kind": "element", "category": "Walls", "name": "W1",
             "start": [0, 0, 0], "end": [0, 10, 0], "width": 0.5},
            {"id": 2, "kind": "element", "category": "Walls", "name": "W2",
             "start": [5, 0, 0], "end": [5, 10, 0], "width": 0.5},
            {"id": 3, "kind": "element", "category": "Walls", "name": "W3",
             "start": [12, 0, 0], "end": [12, 10, 0], "width": 0.5},
            {"id": 10, "kind": "grid", "name": "A",
             "start": [-5, 20, 0], "end": [20, 20, 0]},
        ],
        selection=[1, 2, 3],
        views=[
            {"name": "Level 1", "view_type": "FloorPlan"},
            {"name": "Template", "view_type": "FloorPlan", "is_template": True},
        ],
    )


@pytest.fixture
def scene_file(tmp_path: Path, simple_scene_data: Dict[str, Any]) -> Path:
    """Scene snapshot written to a temporary JSON file."""
    path = tmp_path / "scene.json"
    path.write_text(json.dumps(simple_scene_data), encoding="utf-8")
    return path


# ============================================================================
# Assertion Helpers
# ============================================================================

def assert_vec_approx(actual, expected, tolerance: float = 1e-6) -> None:
    """Assert that two vectors match component-wise."""
    actual = np.asarray(actual, dtype=float)
    expected = np.asarray(expected, dtype=float)
    assert actual.shape == expected.shape, f"shape {actual.shape} != {expected.shape}"
    assert np.allclose(actual, expected, atol=tolerance), f"{actual} != {expected}"
