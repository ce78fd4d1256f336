"""
Выбор представителя коллинеарной группы.

Приоритет (первое совпадение возвращается):
  1. Выбранные элементы образмериваемых видов: выбранная линия
     витражной сетки, затем линейные (витражные первыми), затем точечные.
  2. Невыбранные линии витражной сетки (линейные первыми).
  3. Оси (с непустым именем первыми).
  4. Уровни (с непустым именем первыми).
  5. Невыбранные витражные элементы.
  6. Любой линейный элемент.
  7. Первый элемент группы.

Результат зависит только от состава и порядка группы.
"""

from typing import Callable, List, Optional, Sequence

from autodim.items import ElementKind, ProjectedItem


def _first(items: Sequence[ProjectedItem],
           predicate: Callable[[ProjectedItem], bool]) -> Optional[ProjectedItem]:
    for item in items:
        if predicate(item):
            return item
    return None


def _prefer_linear(items: Sequence[ProjectedItem]) -> Optional[ProjectedItem]:
    if not items:
        return None
    return _first(items, lambda i: not i.is_point_element) or items[0]


def _prefer_named(items: Sequence[ProjectedItem]) -> Optional[ProjectedItem]:
    if not items:
        return None
    return _first(items, lambda i: bool(i.name)) or items[0]


def _select_among_selected(selected: List[ProjectedItem]) -> ProjectedItem:
    grid_lines = [i for i in selected if i.kind is ElementKind.CURTAIN_GRID_LINE]
    if grid_lines:
        return _prefer_linear(grid_lines)

    linear = [i for i in selected if not i.is_point_element]
    if linear:
        return _first(linear, lambda i: i.is_curtain_wall_element) or linear[0]
    return selected[0]


def select_representative(group: Sequence[ProjectedItem]) -> ProjectedItem:
    """Выбрать один элемент, представляющий коллинеарную группу.

    Raises:
        ValueError: пустая группа.
    """
    if not group:
        raise ValueError("Пустая коллинеарная группа")
    if len(group) == 1:
        return group[0]

    selected = [i for i in group if i.is_selected and i.kind.is_dimensionable]
    if selected:
        return _select_among_selected(selected)

    return (
        _prefer_linear([i for i in group if i.kind is ElementKind.CURTAIN_GRID_LINE])
        or _prefer_named([i for i in group if i.kind is ElementKind.GRID])
        or _prefer_named([i for i in group if i.kind is ElementKind.LEVEL])
        or _first(group, lambda i: i.is_curtain_wall_element)
        or _first(group, lambda i: not i.is_point_element)
        or group[0]
    )
