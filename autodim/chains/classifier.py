"""
Классификатор перпендикулярных (точечных) элементов.

Элемент, ось которого в виде вырождается в точку, сравнивается с нормалью
плоскости вида: d = |dir3d · normal|.
  - |d - 1| < perpendicular_tolerance — строго перпендикулярен:
    точка в проекции середины оси;
  - d > 0.7 — «почти» перпендикулярен: точка пересечения оси
    с плоскостью вида, при t вне [0, длина] — снова середина;
  - иначе элемент отбрасывается.
"""

import logging
from typing import Optional

import numpy as np
from numpy.linalg import norm

from autodim.chains.candidates import make_item
from autodim.config import MOSTLY_PERPENDICULAR_DOT, PLANE_PARALLEL_EPS
from autodim.items import ElementKind, ProjectedItem
from autodim.project_config import DimensionSettings
from autodim.projection.view_projector import (
    ViewContext,
    project_point,
    view_plane_normal,
    view_plane_origin,
)
from autodim.provider import ElementGeometryProvider, RawElement

logger = logging.getLogger(__name__)


def view_plane_intersection(
    start3d: np.ndarray,
    end3d: np.ndarray,
    view: ViewContext,
) -> Optional[np.ndarray]:
    """Пересечение отрезка с плоскостью вида.

    Плоскость: (P - origin) · normal = 0, прямая: P = start + t * dir.

    Returns:
        3D-точка или None (прямая параллельна плоскости или t вне [0, длина]).
    """
    start = np.asarray(start3d, dtype=float)
    delta = np.asarray(end3d, dtype=float) - start
    length = norm(delta)
    if length < PLANE_PARALLEL_EPS:
        return None
    direction = delta / length

    normal = view_plane_normal(view)
    denominator = float(np.dot(direction, normal))
    if abs(denominator) < PLANE_PARALLEL_EPS:
        return None

    t = float(np.dot(view_plane_origin(view) - start, normal)) / denominator
    if 0.0 <= t <= length:
        return start + t * direction
    return None


def classify_perpendicular(
    provider: ElementGeometryProvider,
    raw: RawElement,
    view: ViewContext,
    settings: DimensionSettings,
    selected: bool = True,
) -> Optional[ProjectedItem]:
    """Представить элемент точкой, если он перпендикулярен плоскости вида.

    Returns:
        Точечный ProjectedItem (PERPENDICULAR_ELEMENT) или None.
    """
    centerline = provider.get_centerline(raw)
    if centerline is None:
        return None

    start3d = np.asarray(centerline[0], dtype=float)
    end3d = np.asarray(centerline[1], dtype=float)
    delta = end3d - start3d
    length = norm(delta)
    if length < PLANE_PARALLEL_EPS:
        logger.debug("Элемент %s: ось нулевой длины", raw.element_id)
        return None

    d = abs(float(np.dot(delta / length, view_plane_normal(view))))
    strict = abs(d - 1.0) < settings.perpendicular_tolerance
    mostly = d > MOSTLY_PERPENDICULAR_DOT

    if not strict and not mostly:
        logger.debug("Элемент %s: не перпендикулярен виду (d=%.3f)", raw.element_id, d)
        return None

    midpoint = (start3d + end3d) / 2.0
    anchor = midpoint
    if not strict:
        hit = view_plane_intersection(start3d, end3d, view)
        if hit is not None:
            anchor = hit

    logger.debug("Элемент %s: точечный (d=%.3f, %s)", raw.element_id, d,
                 "strict" if strict else "mostly")
    return make_item(
        provider, raw, ElementKind.PERPENDICULAR_ELEMENT,
        project_point(anchor, view), None, selected,
    )
