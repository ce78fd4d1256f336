"""
Построение размерной линии цепочки.

Размерная линия идёт вдоль direction и смещена по перпендикуляру
от центра группы:
  - автоматический режим: на default_offset, выступ концов 1.97;
  - по линии-указателю: смещение до середины линии-указателя,
    не меньше 3.0 по модулю (знак сохраняется), выступ
    max(10% длины, 3.0).
Протяжённость меньше 1.0 раздвигается до ±0.5 от середины. Концы
переводятся обратно в 3D через преобразование вида.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
from numpy.linalg import norm

from autodim.chains.collinear import assign_positions
from autodim.config import (
    AUTO_EXTENSION,
    MIN_CHAIN_SPAN,
    MIN_DIMENSION_LINE_LENGTH,
    PICK_EXTENSION_RATIO,
    PICK_MIN_EXTENSION,
    PICK_MIN_OFFSET,
)
from autodim.items import ProjectedItem, perpendicular_axis
from autodim.project_config import DimensionSettings
from autodim.projection.view_projector import (
    ViewContext,
    view_direction_to_3d,
    view_point_to_3d,
)

logger = logging.getLogger(__name__)

PickLine = Tuple[np.ndarray, np.ndarray]


@dataclass(frozen=True, eq=False)
class ChainGeometry:
    """Всё, что нужно потребителю для создания одной размерной цепочки.

    Attributes:
        direction, start, end: линия в 2D-координатах вида.
        direction3d, start3d, end3d: та же линия в 3D.
        references: упорядоченные ссылки (по позиции вдоль direction).
        items: представители, давшие ссылки, в том же порядке.
        min_position, max_position: протяжённость до выступов
            (после коррекции минимальной длины).
        offset: смещение линии от центра группы по перпендикуляру.
    """
    view_name: str
    direction: np.ndarray
    start: np.ndarray
    end: np.ndarray
    direction3d: np.ndarray
    start3d: np.ndarray
    end3d: np.ndarray
    references: Tuple[Any, ...]
    items: Tuple[ProjectedItem, ...]
    min_position: float
    max_position: float
    offset: float

    @property
    def span(self) -> float:
        return self.max_position - self.min_position

    @property
    def length(self) -> float:
        return float(norm(self.end3d - self.start3d))

    @property
    def positions(self) -> List[float]:
        """Позиции ссылок вдоль направления (по их проекционным точкам)."""
        return [float(np.dot(item.projected_point, self.direction)) for item in self.items]

    @property
    def segment_values(self) -> List[float]:
        """Размеры между соседними ссылками."""
        pos = self.positions
        return [b - a for a, b in zip(pos, pos[1:])]

    def point_on_line(self, position: float) -> np.ndarray:
        """2D-точка размерной линии с координатой position вдоль direction."""
        base = self.start - self.direction * float(np.dot(self.start, self.direction))
        return base + self.direction * position

    def translated(self, delta2d: np.ndarray, view: ViewContext) -> 'ChainGeometry':
        """Копия, сдвинутая в плоскости вида на delta2d."""
        start = self.start + delta2d
        end = self.end + delta2d
        return replace(
            self,
            start=start,
            end=end,
            start3d=view_point_to_3d(start, view),
            end3d=view_point_to_3d(end, view),
            offset=self.offset + float(np.dot(delta2d, perpendicular_axis(self.direction))),
        )


def _pick_offset(pick_line: PickLine, centroid: np.ndarray, perp: np.ndarray) -> float:
    """Смещение до середины линии-указателя, не меньше PICK_MIN_OFFSET по модулю."""
    mid = (np.asarray(pick_line[0], dtype=float)[:2] + np.asarray(pick_line[1], dtype=float)[:2]) / 2.0
    offset = float(np.dot(mid - centroid, perp))
    if abs(offset) < PICK_MIN_OFFSET:
        offset = math.copysign(PICK_MIN_OFFSET, offset)
    return offset


def compose_chain(
    direction: np.ndarray,
    representatives: Sequence[ProjectedItem],
    view: ViewContext,
    settings: DimensionSettings,
    pick_line: Optional[PickLine] = None,
) -> Optional[ChainGeometry]:
    """Вычислить размерную линию для упорядоченных представителей.

    Args:
        direction: направление цепочки в 2D.
        representatives: по одному элементу на коллинеарную группу.
        view: контекст вида (для перевода в 3D).
        settings: настройки (тип ссылки, default_offset).
        pick_line: линия-указатель интерактивного режима (2D).

    Returns:
        ChainGeometry или None: меньше двух представителей или ссылок,
        либо линия короче 0.1.
    """
    if len(representatives) < 2:
        return None

    direction = np.asarray(direction, dtype=float)[:2]
    length = norm(direction)
    direction = direction / length if length > 1e-12 else np.array([1.0, 0.0])

    reps = list(representatives)
    assign_positions(reps, direction)
    reps.sort(key=lambda item: item.position_along_direction)

    references: List[Any] = []
    kept: List[ProjectedItem] = []
    for item in reps:
        ref = item.get_reference(settings.reference_type)
        if ref is None:
            logger.debug("Нет ссылки: %s", item.display_name())
            continue
        references.append(ref)
        kept.append(item)

    if len(references) < 2:
        logger.debug("Цепочка отброшена: ссылок %d", len(references))
        return None

    perp = perpendicular_axis(direction)
    centroid = np.mean([item.projected_point for item in kept], axis=0)

    if pick_line is not None:
        offset = _pick_offset(pick_line, centroid, perp)
        extension = None
    else:
        offset = settings.default_offset
        extension = AUTO_EXTENSION

    min_pos = min(item.position_along_direction for item in kept)
    max_pos = max(item.position_along_direction for item in kept)
    if max_pos - min_pos < MIN_CHAIN_SPAN:
        center = (min_pos + max_pos) / 2.0
        min_pos = center - MIN_CHAIN_SPAN / 2.0
        max_pos = center + MIN_CHAIN_SPAN / 2.0

    if extension is None:
        extension = max((max_pos - min_pos) * PICK_EXTENSION_RATIO, PICK_MIN_EXTENSION)

    # Линия: перпендикулярная координата центра + смещение, продольная — позиции
    base = perp * (float(np.dot(centroid, perp)) + offset)
    start2d = base + direction * (min_pos - extension)
    end2d = base + direction * (max_pos + extension)

    start3d = view_point_to_3d(start2d, view)
    end3d = view_point_to_3d(end2d, view)
    if norm(end3d - start3d) < MIN_DIMENSION_LINE_LENGTH:
        logger.debug("Цепочка отброшена: размерная линия короче %.2f", MIN_DIMENSION_LINE_LENGTH)
        return None

    return ChainGeometry(
        view_name=view.name,
        direction=direction,
        start=start2d,
        end=end2d,
        direction3d=view_direction_to_3d(direction, view),
        start3d=start3d,
        end3d=end3d,
        references=tuple(references),
        items=tuple(kept),
        min_position=min_pos,
        max_position=max_pos,
        offset=offset,
    )


def nudge_chains(
    chains: Sequence[ChainGeometry],
    view: ViewContext,
    distance: float,
) -> List[ChainGeometry]:
    """Сдвинуть все цепочки вида влево (поворот направления на +90°) на distance."""
    return [chain.translated(perpendicular_axis(chain.direction) * distance, view)
            for chain in chains]
