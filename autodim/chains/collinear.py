"""
Слияние коллинеарных элементов внутри параллельной группы.

Элемент присоединяется к первой подходящей группе, если его
перпендикулярное расстояние до представителя группы (первого члена)
не больше max(допуск элемента, допуск представителя). Допуски зависят
от класса: оси 0.005, витражи 0.008, несущие 0.05, прочие 0.01.
"""

import logging
from typing import Iterable, List

import numpy as np

from autodim.chains.grouping import ParallelBucket
from autodim.items import ProjectedItem, perpendicular_axis
from autodim.project_config import DimensionSettings

logger = logging.getLogger(__name__)

__all__ = [
    "assign_positions",
    "find_collinear_groups",
    "has_selected_dimensionable",
    "lies_on_same_infinite_line",
    "pair_tolerance",
    "perpendicular_axis",
    "perpendicular_distance",
]


def assign_positions(items: Iterable[ProjectedItem], direction: np.ndarray) -> None:
    """position_along_direction = point · direction для текущего прохода."""
    for item in items:
        item.position_along_direction = float(np.dot(item.projected_point, direction))


def perpendicular_distance(a: ProjectedItem, b: ProjectedItem, direction: np.ndarray) -> float:
    """|(b - a) · perp| — расстояние между прямыми, проходящими через a и b."""
    axis = perpendicular_axis(direction)
    return abs(float(np.dot(b.projected_point - a.projected_point, axis)))


def lies_on_same_infinite_line(
    a: ProjectedItem,
    b: ProjectedItem,
    direction: np.ndarray,
    tolerance: float,
) -> bool:
    return perpendicular_distance(a, b, direction) <= tolerance


def pair_tolerance(a: ProjectedItem, b: ProjectedItem, settings: DimensionSettings) -> float:
    return max(settings.tolerance_for(a.tolerance_class),
               settings.tolerance_for(b.tolerance_class))


def find_collinear_groups(
    bucket: ParallelBucket,
    settings: DimensionSettings,
) -> List[List[ProjectedItem]]:
    """Разбить параллельную группу на коллинеарные подгруппы.

    Returns:
        Непустые группы в порядке появления; первый член — представитель
        для проверки коллинеарности.
    """
    direction = bucket.direction
    assign_positions(bucket.items, direction)

    groups: List[List[ProjectedItem]] = []
    for item in bucket.items:
        for group in groups:
            anchor = group[0]
            if lies_on_same_infinite_line(item, anchor, direction,
                                          pair_tolerance(item, anchor, settings)):
                group.append(item)
                break
        else:
            groups.append([item])

    logger.debug("Коллинеарность: %d элементов -> %d групп", len(bucket.items), len(groups))
    return groups


def has_selected_dimensionable(items: Iterable[ProjectedItem]) -> bool:
    """Есть ли в группе выбранный элемент, способный породить цепочку."""
    return any(item.is_selected and item.kind.is_dimensionable for item in items)
