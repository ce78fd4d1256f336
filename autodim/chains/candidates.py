"""
Построение кандидатов ProjectedItem из элементов хоста.

Линейный элемент: обе точки оси проецируются на вид; если проекция
короче 1e-3 — элемент не линейный в этом виде и передаётся классификатору
перпендикулярных (classifier.py). Оси и уровни никогда не считаются
выбранными и всегда образмериваются по собственной ссылке.

Ошибки геометрии не исключения: элемент без оси просто не попадает
в результат (возвращается None, запись в DEBUG).
"""

import logging
from typing import Hashable, Optional

import numpy as np
from numpy.linalg import norm

from autodim.config import MIN_PROJECTED_LENGTH, STRUCTURAL_WALL_TYPE_KEYWORDS
from autodim.items import ElementKind, ProjectedItem, tolerance_class_for
from autodim.projection.view_projector import ViewContext, project_point
from autodim.provider import ElementGeometryProvider, RawElement

logger = logging.getLogger(__name__)


def is_structural_element(raw: RawElement) -> bool:
    """Несущий элемент: категория «structural» или тип стены несущий."""
    if "structural" in raw.category.lower():
        return True
    type_name = raw.type_name.lower()
    return any(k in type_name for k in STRUCTURAL_WALL_TYPE_KEYWORDS)


def make_item(
    provider: ElementGeometryProvider,
    raw: RawElement,
    kind: ElementKind,
    point: np.ndarray,
    direction: Optional[np.ndarray],
    selected: bool,
    parent_wall_id: Optional[Hashable] = None,
) -> ProjectedItem:
    """Собрать ProjectedItem с ссылками и флагами элемента."""
    refs = provider.get_references(raw)
    if kind in (ElementKind.GRID, ElementKind.LEVEL):
        # Оси и уровни: одна геометрическая ссылка на весь элемент
        centerline = refs.get("geometric")
        exterior = interior = None
    else:
        centerline = refs.get("centerline")
        exterior = refs.get("exterior_face")
        interior = refs.get("interior_face")

    return ProjectedItem(
        element_id=raw.element_id,
        kind=kind,
        projected_point=point,
        projected_direction=direction,
        is_point_element=direction is None,
        is_selected=selected,
        reference_centerline=centerline,
        reference_exterior_face=exterior,
        reference_interior_face=interior,
        reference_geometric=refs.get("geometric"),
        element_width=provider.get_width(raw),
        tolerance_class=tolerance_class_for(kind, raw.category),
        name=raw.name,
        category=raw.category,
        is_curtain_wall_element=kind.is_curtain,
        is_mullion=kind is ElementKind.MULLION,
        is_structural=is_structural_element(raw),
        parent_wall_id=raw.parent_wall_id if parent_wall_id is None else parent_wall_id,
    )


def project_segment(start3d, end3d, view: ViewContext):
    """Спроецировать отрезок: (середина, единичное направление | None)."""
    start2d = project_point(start3d, view)
    end2d = project_point(end3d, view)
    delta = end2d - start2d
    length = norm(delta)
    center = (start2d + end2d) / 2.0
    if length < MIN_PROJECTED_LENGTH:
        return center, None
    return center, delta / length


# ---------------------------------------------------------------------------
# Строители по видам элементов
# ---------------------------------------------------------------------------

def build_linear_item(
    provider: ElementGeometryProvider,
    raw: RawElement,
    view: ViewContext,
    selected: bool = True,
    kind: ElementKind = ElementKind.ELEMENT,
) -> Optional[ProjectedItem]:
    """Линейный кандидат по оси элемента.

    Returns:
        ProjectedItem или None (нет оси либо проекция вырождена —
        тогда вызывающий пробует classify_perpendicular).
    """
    centerline = provider.get_centerline(raw)
    if centerline is None:
        logger.debug("Элемент %s: нет оси", raw.element_id)
        return None

    center, direction = project_segment(centerline[0], centerline[1], view)
    if direction is None:
        logger.debug("Элемент %s: проекция оси вырождена", raw.element_id)
        return None

    return make_item(provider, raw, kind, center, direction, selected)


def build_grid_item(
    provider: ElementGeometryProvider,
    raw: RawElement,
    view: ViewContext,
) -> Optional[ProjectedItem]:
    """Кандидат-ось. Ось, идущая вдоль взгляда, в этом виде не образмеривается."""
    centerline = provider.get_centerline(raw)
    if centerline is None:
        logger.debug("Ось %s (%s): нет линии", raw.element_id, raw.name)
        return None

    center, direction = project_segment(centerline[0], centerline[1], view)
    if direction is None:
        logger.debug("Ось %s (%s): линия вырождена в виде %s", raw.element_id, raw.name, view.name)
        return None

    return make_item(provider, raw, ElementKind.GRID, center, direction, selected=False)


def build_level_item(
    provider: ElementGeometryProvider,
    raw: RawElement,
    view: ViewContext,
) -> Optional[ProjectedItem]:
    """Кандидат-уровень (только разрезы и фасады).

    Линия уровня берётся из геометрии вида; если её нет или она
    вырождена — горизонтальная линия на отметке уровня.
    """
    if not view.view_type.is_section_like:
        return None

    centerline = provider.get_centerline(raw)
    if centerline is not None:
        center, direction = project_segment(centerline[0], centerline[1], view)
        if direction is not None:
            return make_item(provider, raw, ElementKind.LEVEL, center, direction, selected=False)

    if raw.elevation is None:
        logger.debug("Уровень %s (%s): нет линии и отметки", raw.element_id, raw.name)
        return None

    point = project_point((0.0, 0.0, raw.elevation), view)
    return make_item(provider, raw, ElementKind.LEVEL, point, np.array([1.0, 0.0]), selected=False)
