"""
Сбор кандидатов для одного вида.

Порядок обхода — порядок поставщика (по возрастанию id):
  1. Оси (include_grids), уровни (только разрезы/фасады, include_levels).
  2. Выбранные элементы с осью: сначала как линейные, затем
     через классификатор перпендикулярных. Фитинги, арматура и изоляция
     только при include_structural.
  3. Витражи, импосты и линии витражной сетки (curtain_wall.py).
  4. Для планов — все оси проекта, ещё не попавшие в набор.

Множество emitted гарантирует, что элемент, достижимый несколькими путями,
попадает в набор один раз.
"""

import logging
from collections import Counter
from typing import Collection, Hashable, List, Optional, Set

from autodim.chains.candidates import build_grid_item, build_level_item, build_linear_item
from autodim.chains.classifier import classify_perpendicular
from autodim.chains.curtain_wall import process_curtain_walls
from autodim.config import FITTING_KEYWORDS
from autodim.items import ElementKind, ProjectedItem
from autodim.project_config import DimensionSettings
from autodim.projection.view_projector import ViewContext
from autodim.provider import ElementGeometryProvider, RawElement

logger = logging.getLogger(__name__)


def _is_fitting(raw: RawElement) -> bool:
    category = raw.category.lower()
    return any(k in category for k in FITTING_KEYWORDS)


def _build_selected_element(
    provider: ElementGeometryProvider,
    raw: RawElement,
    view: ViewContext,
    settings: DimensionSettings,
) -> Optional[ProjectedItem]:
    item = build_linear_item(provider, raw, view, selected=True)
    if item is None:
        item = classify_perpendicular(provider, raw, view, settings, selected=True)
    return item


def collect_items(
    provider: ElementGeometryProvider,
    view: ViewContext,
    selected_ids: Collection[Hashable],
    settings: DimensionSettings,
) -> List[ProjectedItem]:
    """Собрать все ProjectedItem вида.

    Args:
        provider: поставщик геометрии
        view: контекст вида
        selected_ids: идентификаторы выбранных пользователем элементов
        settings: настройки (флаги include_*)

    Returns:
        Список кандидатов, без повторов по element_id
    """
    selected = set(selected_ids)
    items: List[ProjectedItem] = []
    emitted: Set[Hashable] = set()
    curtain_walls: List[RawElement] = []
    skipped = 0

    def add(item: Optional[ProjectedItem]) -> None:
        if item is not None and item.element_id not in emitted:
            items.append(item)
            emitted.add(item.element_id)

    for raw in provider.elements_in_view(view):
        kind = provider.get_kind(raw)

        if kind is ElementKind.GRID:
            if settings.include_grids:
                add(build_grid_item(provider, raw, view))
        elif kind is ElementKind.LEVEL:
            if settings.include_levels and view.view_type.is_section_like:
                add(build_level_item(provider, raw, view))
        elif kind is ElementKind.CURTAIN_WALL:
            curtain_walls.append(raw)
        elif kind in (ElementKind.MULLION, ElementKind.CURTAIN_GRID_LINE):
            # Импосты и линии сетки приходят через свой витраж
            continue
        elif raw.element_id not in selected:
            skipped += 1
        elif _is_fitting(raw) and not settings.include_structural:
            logger.debug("Элемент %s (%s) пропущен: include_structural выключен",
                         raw.element_id, raw.category)
        else:
            item = _build_selected_element(provider, raw, view, settings)
            if item is None:
                logger.debug("Элемент %s: ни линейный, ни перпендикулярный", raw.element_id)
            add(item)

    items.extend(process_curtain_walls(provider, curtain_walls, view, selected, settings, emitted))

    if view.view_type.is_plan and settings.include_grids:
        added = 0
        for raw in provider.all_grids():
            if raw.element_id in emitted:
                continue
            grid_item = build_grid_item(provider, raw, view)
            if grid_item is not None:
                add(grid_item)
                added += 1
        if added:
            logger.debug("Добавлено осей проекта: %d", added)

    by_kind = Counter(item.kind.value for item in items)
    logger.debug("Кандидаты вида %s: %d (%s), не выбрано: %d, выбрано: %d",
                 view.name, len(items), dict(by_kind), skipped,
                 sum(1 for item in items if item.is_selected))
    return items
