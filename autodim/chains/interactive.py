"""
Интерактивная цепочка по линии-указателю.

Пользователь задаёт две точки в плоскости вида. Направление цепочки —
горизонталь или вертикаль по преобладающей составляющей. В цепочку
попадают элементы, которые линия-указатель пересекает и которые идут
поперёк направления цепочки (|dir · axis| < 0.5); оси и уровни
принимаются всегда. Меньше двух элементов — цепочки нет, линия-указатель
остаётся у вызывающего.
"""

import logging
from dataclasses import dataclass
from typing import Hashable, List, Optional, Sequence, Set

import numpy as np
from numpy.linalg import norm

from autodim.chains.candidates import build_grid_item, build_linear_item, make_item
from autodim.chains.classifier import classify_perpendicular
from autodim.chains.composer import ChainGeometry, compose_chain
from autodim.config import (
    LEVEL_PICK_HALF_LENGTH,
    PICK_COLLINEAR_AREA,
    PICK_EXCLUDED_KEYWORDS,
    PICK_PERPENDICULAR_DOT,
    PICK_POINT_TOLERANCE,
    SEGMENT_PARALLEL_EPS,
)
from autodim.geometry.spatial_index import build_rtree_index, query_rtree, segment_bounds
from autodim.items import ElementKind, ProjectedItem
from autodim.project_config import DimensionSettings
from autodim.projection.view_projector import ViewContext, project_point
from autodim.provider import ElementGeometryProvider, RawElement

logger = logging.getLogger(__name__)


@dataclass
class PickCandidate:
    """Элемент, доступный линии-указателю: кандидат и его 2D-отрезок.

    Для точечных элементов start и end совпадают.
    """
    item: ProjectedItem
    start: np.ndarray
    end: np.ndarray

    @property
    def is_point(self) -> bool:
        return self.item.is_point_element


# ---------------------------------------------------------------------------
# Геометрия 2D
# ---------------------------------------------------------------------------

def determine_chain_direction(start2d, end2d) -> np.ndarray:
    """(1, 0), если |dx| > |dy|, иначе (0, 1)."""
    dx = abs(float(end2d[0]) - float(start2d[0]))
    dy = abs(float(end2d[1]) - float(start2d[1]))
    return np.array([1.0, 0.0]) if dx > dy else np.array([0.0, 1.0])


def triangle_area(p1, p2, p3) -> float:
    return abs((p1[0] * (p2[1] - p3[1]) + p2[0] * (p3[1] - p1[1]) + p3[0] * (p1[1] - p2[1])) / 2.0)


def collinear_overlap(a1, a2, b1, b2, area_tolerance: float = PICK_COLLINEAR_AREA) -> bool:
    """Отрезки лежат на одной прямой (по площади треугольников) и перекрываются."""
    if triangle_area(a1, a2, b1) > area_tolerance or triangle_area(a1, a2, b2) > area_tolerance:
        return False
    delta = np.asarray(a2, dtype=float) - np.asarray(a1, dtype=float)
    length = norm(delta)
    if length < SEGMENT_PARALLEL_EPS:
        return False
    axis = delta / length
    p1 = float(np.dot(np.asarray(b1) - a1, axis))
    p2 = float(np.dot(np.asarray(b2) - a1, axis))
    lo, hi = min(p1, p2), max(p1, p2)
    return not (hi < 0.0 or lo > length)


def segments_intersect(a1, a2, b1, b2) -> bool:
    """Пересечение отрезков a1a2 и b1b2 (параметры t, u в [0, 1]).

    Для параллельных отрезков — проверка коллинеарного перекрытия.
    """
    x1, y1 = a1[0], a1[1]
    x2, y2 = a2[0], a2[1]
    x3, y3 = b1[0], b1[1]
    x4, y4 = b2[0], b2[1]

    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < SEGMENT_PARALLEL_EPS:
        return collinear_overlap(np.asarray(a1), np.asarray(a2), np.asarray(b1), np.asarray(b2))

    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
    u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / denom
    return 0.0 <= t <= 1.0 and 0.0 <= u <= 1.0


def point_segment_distance(point, start, end) -> float:
    p = np.asarray(point, dtype=float)
    a = np.asarray(start, dtype=float)
    ab = np.asarray(end, dtype=float) - a
    denom = float(np.dot(ab, ab))
    if denom < SEGMENT_PARALLEL_EPS:
        return float(norm(p - a))
    t = min(1.0, max(0.0, float(np.dot(p - a, ab)) / denom))
    return float(norm(p - (a + ab * t)))


# ---------------------------------------------------------------------------
# Кандидаты
# ---------------------------------------------------------------------------

def _pick_candidate(
    provider: ElementGeometryProvider,
    raw: RawElement,
    view: ViewContext,
    settings: DimensionSettings,
) -> Optional[PickCandidate]:
    kind = provider.get_kind(raw)

    if kind is ElementKind.GRID:
        if not settings.include_grids:
            return None
        item = build_grid_item(provider, raw, view)
        if item is None:
            return None
        start, end = provider.get_centerline(raw)
        return PickCandidate(item, project_point(start, view), project_point(end, view))

    if kind is ElementKind.LEVEL:
        if not (settings.include_levels and view.view_type.is_section_like) or raw.elevation is None:
            return None
        center = project_point((0.0, 0.0, raw.elevation), view)
        item = make_item(provider, raw, ElementKind.LEVEL, center, np.array([1.0, 0.0]), selected=False)
        offset = np.array([LEVEL_PICK_HALF_LENGTH, 0.0])
        return PickCandidate(item, center - offset, center + offset)

    if any(k in raw.category.lower() for k in PICK_EXCLUDED_KEYWORDS):
        return None
    centerline = provider.get_centerline(raw)
    if centerline is None:
        return None

    item = build_linear_item(provider, raw, view, selected=True, kind=kind)
    if item is None:
        item = classify_perpendicular(provider, raw, view, settings, selected=True)
        if item is None:
            return None
        return PickCandidate(item, item.projected_point, item.projected_point)
    return PickCandidate(item, project_point(centerline[0], view), project_point(centerline[1], view))


def collect_pick_candidates(
    provider: ElementGeometryProvider,
    view: ViewContext,
    settings: DimensionSettings,
) -> List[PickCandidate]:
    """Все элементы вида и все оси проекта, без повторов по id."""
    seen: Set[Hashable] = set()
    candidates: List[PickCandidate] = []
    for raw in list(provider.elements_in_view(view)) + list(provider.all_grids()):
        if raw.element_id in seen:
            continue
        seen.add(raw.element_id)
        candidate = _pick_candidate(provider, raw, view, settings)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def find_intersected_items(
    candidates: Sequence[PickCandidate],
    start2d,
    end2d,
) -> List[PickCandidate]:
    """Кандидаты, которые пересекает линия-указатель.

    Предварительный отбор по bbox через R-tree, затем точная проверка:
    отрезки — пересечение, точки — расстояние до линии не больше
    PICK_POINT_TOLERANCE.
    """
    if not candidates:
        return []
    start2d = np.asarray(start2d, dtype=float)[:2]
    end2d = np.asarray(end2d, dtype=float)[:2]

    rtree_idx = build_rtree_index([(c.start, c.end) for c in candidates], pad=PICK_POINT_TOLERANCE)
    hits = []
    for cand_id in query_rtree(rtree_idx, segment_bounds(start2d, end2d)):
        candidate = candidates[cand_id]
        if candidate.is_point:
            hit = point_segment_distance(candidate.item.projected_point, start2d, end2d) <= PICK_POINT_TOLERANCE
        else:
            hit = segments_intersect(start2d, end2d, candidate.start, candidate.end)
        if hit:
            hits.append(candidate)
    logger.debug("Линия-указатель: пересечено %d из %d", len(hits), len(candidates))
    return hits


def filter_perpendicular(
    candidates: Sequence[PickCandidate],
    direction: np.ndarray,
) -> List[PickCandidate]:
    """Оставить элементы поперёк цепочки и упорядочить по позиции."""
    kept = []
    for candidate in candidates:
        item = candidate.item
        if item.kind in (ElementKind.GRID, ElementKind.LEVEL) or item.projected_direction is None:
            kept.append(candidate)
        elif abs(float(np.dot(item.projected_direction, direction))) < PICK_PERPENDICULAR_DOT:
            kept.append(candidate)
    kept.sort(key=lambda c: float(np.dot(c.item.projected_point, direction)))
    return kept


def build_interactive_chain(
    provider: ElementGeometryProvider,
    view: ViewContext,
    start2d,
    end2d,
    settings: DimensionSettings,
) -> Optional[ChainGeometry]:
    """Построить цепочку по линии-указателю (точки в координатах вида).

    Returns:
        ChainGeometry или None, если поперечных элементов меньше двух.
    """
    start2d = np.asarray(start2d, dtype=float)[:2]
    end2d = np.asarray(end2d, dtype=float)[:2]
    direction = determine_chain_direction(start2d, end2d)

    candidates = collect_pick_candidates(provider, view, settings)
    picked = filter_perpendicular(find_intersected_items(candidates, start2d, end2d), direction)
    if len(picked) < 2:
        logger.info("%s: линия-указатель пересекает %d элемент(ов), цепочка не создана",
                    view.name, len(picked))
        return None

    return compose_chain(direction, [c.item for c in picked], view, settings,
                         pick_line=(start2d, end2d))
