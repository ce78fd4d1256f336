"""
Группировка линейных кандидатов по параллельным направлениям.

Два направления параллельны, если |x1*y2 - y1*x2| < parallel_tolerance
(≈3° при 0.05). Каноническое направление группы — направление первого
пришедшего элемента, без усреднения; поэтому порядок входа задаёт
результат и должен быть стабильным (по возрастанию id у поставщика).
Точечные элементы не имеют направления и добавляются во все группы.
"""

import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np

from autodim.config import PARALLEL_TOLERANCE
from autodim.items import ProjectedItem

logger = logging.getLogger(__name__)

DEFAULT_BUCKET_DIRECTION = (1.0, 0.0)


@dataclass(eq=False)
class ParallelBucket:
    """Группа параллельных элементов: каноническое направление и члены."""
    direction: np.ndarray
    items: List[ProjectedItem] = field(default_factory=list)

    @property
    def linear_items(self) -> List[ProjectedItem]:
        return [item for item in self.items if not item.is_point_element]

    def __len__(self) -> int:
        return len(self.items)


def are_directions_parallel(dir1: np.ndarray, dir2: np.ndarray,
                            tolerance: float = PARALLEL_TOLERANCE) -> bool:
    """Проверка параллельности по модулю векторного произведения."""
    cross = float(dir1[0]) * float(dir2[1]) - float(dir1[1]) * float(dir2[0])
    return abs(cross) < tolerance


def group_by_parallel_directions(
    items: List[ProjectedItem],
    tolerance: float = PARALLEL_TOLERANCE,
) -> List[ParallelBucket]:
    """Разбить кандидатов на группы параллельных направлений.

    Args:
        items: кандидаты одного вида в порядке поступления.
        tolerance: порог векторного произведения.

    Returns:
        Список групп. Каждый линейный элемент — ровно в одной группе,
        точечные — во всех. Если линейных нет, но есть точечные —
        одна группа с направлением (1, 0).
    """
    point_items = [item for item in items if item.is_point_element]
    linear_items = [item for item in items if not item.is_point_element]

    buckets: List[ParallelBucket] = []
    for item in linear_items:
        for bucket in buckets:
            if are_directions_parallel(item.projected_direction, bucket.direction, tolerance):
                bucket.items.append(item)
                break
        else:
            buckets.append(ParallelBucket(direction=item.projected_direction.copy(), items=[item]))

    if not buckets and point_items:
        buckets.append(ParallelBucket(direction=np.array(DEFAULT_BUCKET_DIRECTION)))

    for bucket in buckets:
        bucket.items.extend(point_items)

    logger.debug("Группировка: %d линейных, %d точечных -> %d групп",
                 len(linear_items), len(point_items), len(buckets))
    return buckets
