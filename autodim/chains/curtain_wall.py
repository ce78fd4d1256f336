"""
Разбор витражей: сам витраж, импосты и линии витражной сетки.

Витраж попадает в кандидаты, только если он выбран и включён
include_curtain_walls. Импосты и линии сетки (управляются
include_mullions) добавляются, если ничего не выбрано, выбран сам
элемент или выбран его витраж. Импост, вырождающийся в точку,
становится точечным элементом; импосты всегда образмериваются по оси.
"""

import logging
from typing import Collection, Hashable, List, Optional, Set

import numpy as np

from autodim.chains.candidates import build_linear_item, make_item
from autodim.items import ElementKind, ProjectedItem
from autodim.project_config import DimensionSettings
from autodim.projection.view_projector import ViewContext, project_direction, project_point
from autodim.provider import ElementGeometryProvider, RawElement

logger = logging.getLogger(__name__)

_MEMBER_KINDS = (ElementKind.MULLION, ElementKind.CURTAIN_GRID_LINE)


def build_member_item(
    provider: ElementGeometryProvider,
    member: RawElement,
    wall: RawElement,
    view: ViewContext,
    selected: bool,
) -> Optional[ProjectedItem]:
    """Кандидат для импоста или линии сетки (точечный при вырождении)."""
    centerline = provider.get_centerline(member)
    if centerline is None:
        return None
    start3d = np.asarray(centerline[0], dtype=float)
    end3d = np.asarray(centerline[1], dtype=float)
    center2d = project_point((start3d + end3d) / 2.0, view)
    direction2d = project_direction(end3d - start3d, view)

    parent = member.parent_wall_id if member.parent_wall_id is not None else wall.element_id
    return make_item(provider, member, member.kind, center2d, direction2d, selected,
                     parent_wall_id=parent)


def process_curtain_wall(
    provider: ElementGeometryProvider,
    wall: RawElement,
    view: ViewContext,
    selected_ids: Collection[Hashable],
    settings: DimensionSettings,
    emitted: Set[Hashable],
) -> List[ProjectedItem]:
    """Кандидаты одного витража. Добавленные id пополняют emitted."""
    items: List[ProjectedItem] = []
    wall_selected = wall.element_id in selected_ids

    if wall_selected and settings.include_curtain_walls and wall.element_id not in emitted:
        wall_item = build_linear_item(provider, wall, view, selected=True,
                                      kind=ElementKind.CURTAIN_WALL)
        if wall_item is not None:
            items.append(wall_item)
            emitted.add(wall.element_id)
        else:
            logger.debug("Витраж %s: ось вырождена в виде %s", wall.element_id, view.name)

    if not settings.include_mullions:
        return items

    for member in provider.curtain_wall_members(wall):
        if member.kind not in _MEMBER_KINDS or member.element_id in emitted:
            continue
        member_selected = member.element_id in selected_ids
        include = not selected_ids or member_selected or wall_selected
        if not include:
            continue
        item = build_member_item(provider, member, wall, view,
                                 selected=member_selected or wall_selected)
        if item is None:
            logger.debug("Импост %s: нет оси", member.element_id)
            continue
        items.append(item)
        emitted.add(member.element_id)

    return items


def process_curtain_walls(
    provider: ElementGeometryProvider,
    walls: List[RawElement],
    view: ViewContext,
    selected_ids: Collection[Hashable],
    settings: DimensionSettings,
    emitted: Set[Hashable],
) -> List[ProjectedItem]:
    """Кандидаты всех витражей вида."""
    items: List[ProjectedItem] = []
    if not (settings.include_curtain_walls or settings.include_mullions):
        return items
    for wall in walls:
        items.extend(process_curtain_wall(provider, wall, view, selected_ids, settings, emitted))
    if items:
        logger.debug("Витражи: %d элементов", len(items))
    return items
