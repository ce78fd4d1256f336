"""
Пространственный индекс 2D-отрезков (rtree-обёртка).

Используется интерактивным режимом, чтобы линия-указатель проверялась
на пересечение только с элементами, чей bbox её касается. Изолирует
зависимость от библиотеки `rtree` и обеспечивает потокобезопасный доступ.
"""

import threading
from typing import List, Sequence, Tuple

import numpy as np
from rtree import index

Bounds = Tuple[float, float, float, float]

_rtree_lock = threading.Lock()


def segment_bounds(start: np.ndarray, end: np.ndarray, pad: float = 0.0) -> Bounds:
    """Ограничивающий прямоугольник отрезка, расширенный на pad."""
    return (
        min(start[0], end[0]) - pad,
        min(start[1], end[1]) - pad,
        max(start[0], end[0]) + pad,
        max(start[1], end[1]) + pad,
    )


def build_rtree_index(
    segments: Sequence[Tuple[np.ndarray, np.ndarray]],
    pad: float = 0.0,
) -> index.Index:
    """Построить 2D R-tree по bbox отрезков.

    Args:
        segments: пары 2D-точек (start, end); идентификатор — позиция в списке.
        pad: запас по bbox (для точечных элементов — радиус захвата).

    Returns:
        Построенный rtree Index (2D).
    """
    props = index.Property()
    props.dimension = 2
    rtree_idx = index.Index(properties=props)

    for seg_id, (start, end) in enumerate(segments):
        rtree_idx.insert(seg_id, segment_bounds(start, end, pad))

    return rtree_idx


def query_rtree(spatial_idx: index.Index, bounds: Bounds) -> List[int]:
    """Потокобезопасный запрос к rtree по прямоугольной области.

    Returns:
        Отсортированный список идентификаторов отрезков, чей bbox
        пересекается с bounds.
    """
    with _rtree_lock:
        return sorted(spatial_idx.intersection(bounds))
