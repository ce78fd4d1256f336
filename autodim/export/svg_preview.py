"""
SVG-превью размерных цепочек.

SvgPreviewPlacement — потребитель, который принимает цепочки так же, как
RecordingPlacement, и по запросу рисует каждый вид в отдельный SVG:
представители (отрезки или точки), выносные линии, размерная линия,
засечки и значения размеров между соседними ссылками.

Координаты вида (ось Y вверх) переводятся в координаты SVG (ось Y вниз).
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

import numpy as np
import svgwrite

from autodim.chains.composer import ChainGeometry
from autodim.items import perpendicular_axis
from autodim.placement import RecordingPlacement

logger = logging.getLogger(__name__)

# Пикселей на единицу модели
SVG_SCALE = 20.0
SVG_MARGIN = 40.0
ITEM_HALF_LENGTH = 0.75
TICK_HALF_LENGTH = 0.2

ITEM_STYLE = {'stroke': '#404040', 'stroke_width': 2, 'fill': 'none'}
WITNESS_STYLE = {'stroke': '#808080', 'stroke_width': 0.5, 'stroke_dasharray': '4,2'}
DIMENSION_STYLE = {'stroke': '#008000', 'stroke_width': 1}
TEXT_STYLE = {'font_size': 11, 'font_family': 'sans-serif', 'fill': '#008000'}


def _safe_filename(name: str) -> str:
    """Имя вида → имя файла (без разделителей пути и пробелов)."""
    cleaned = re.sub(r'[^\w.-]+', '_', name).strip('_')
    return cleaned or 'view'


def format_value(value: float) -> str:
    """Значение размера для подписи (2 знака после запятой)."""
    return f"{value:.2f}"


# ---------------------------------------------------------------------------
# Преобразование координат
# ---------------------------------------------------------------------------

class _Canvas:
    """Отображение координат вида в координаты SVG."""

    def __init__(self, points: Sequence[np.ndarray], scale: float = SVG_SCALE, margin: float = SVG_MARGIN):
        pts = np.array([np.asarray(p, dtype=float)[:2] for p in points]) if points else np.zeros((1, 2))
        self.min_xy = pts.min(axis=0)
        self.max_xy = pts.max(axis=0)
        self.scale = scale
        self.margin = margin

    @property
    def size(self) -> Tuple[float, float]:
        extent = (self.max_xy - self.min_xy) * self.scale
        return (float(extent[0]) + 2 * self.margin, float(extent[1]) + 2 * self.margin)

    def __call__(self, point) -> Tuple[float, float]:
        x = (float(point[0]) - self.min_xy[0]) * self.scale + self.margin
        y = (self.max_xy[1] - float(point[1])) * self.scale + self.margin
        return (float(x), float(y))


def _chain_points(chain: ChainGeometry) -> List[np.ndarray]:
    points = [chain.start, chain.end]
    for item in chain.items:
        points.append(item.projected_point)
    return points


# ---------------------------------------------------------------------------
# Отрисовка
# ---------------------------------------------------------------------------

def render_chain(dwg: svgwrite.Drawing, chain: ChainGeometry, canvas: _Canvas) -> svgwrite.container.Group:
    """Отрисовать одну цепочку в SVG-группу.

    Args:
        dwg: SVG-документ (для создания элементов).
        chain: цепочка в координатах вида.
        canvas: преобразование координат.

    Returns:
        SVG-группа цепочки.
    """
    group = dwg.g(class_='chain')
    perp = perpendicular_axis(chain.direction)
    tick = (chain.direction + perp) / np.sqrt(2.0) * TICK_HALF_LENGTH

    for item in chain.items:
        point = item.projected_point
        if item.projected_direction is not None:
            half = item.projected_direction * ITEM_HALF_LENGTH
            group.add(dwg.line(start=canvas(point - half), end=canvas(point + half), **ITEM_STYLE))
        else:
            group.add(dwg.circle(center=canvas(point), r=3, **ITEM_STYLE))

        position = float(np.dot(point, chain.direction))
        foot = chain.point_on_line(position)
        witness = dwg.line(start=canvas(point), end=canvas(foot), **WITNESS_STYLE)
        witness['data-element'] = str(item.element_id)
        group.add(witness)
        group.add(dwg.line(start=canvas(foot - tick), end=canvas(foot + tick), **DIMENSION_STYLE))

    group.add(dwg.line(start=canvas(chain.start), end=canvas(chain.end), **DIMENSION_STYLE))

    positions = chain.positions
    for left, right, value in zip(positions, positions[1:], chain.segment_values):
        mid = chain.point_on_line((left + right) / 2.0) + perp * TICK_HALF_LENGTH
        group.add(dwg.text(format_value(value), insert=canvas(mid), text_anchor='middle', **TEXT_STYLE))
    return group


def render_view(filename: Union[str, Path], view_name: str, chains: Sequence[ChainGeometry]) -> Path:
    """Сохранить все цепочки одного вида в SVG-файл."""
    points: List[np.ndarray] = []
    for chain in chains:
        points.extend(_chain_points(chain))
    canvas = _Canvas(points)
    width, height = canvas.size

    dwg = svgwrite.Drawing(
        str(filename),
        size=(f"{width:.0f}px", f"{height:.0f}px"),
        viewBox=f"0 0 {width:.2f} {height:.2f}",
        debug=False,
    )
    dwg.add(dwg.text(view_name, insert=(SVG_MARGIN / 2, SVG_MARGIN / 2), font_size=12,
                     font_family='sans-serif'))
    chains_group = dwg.g(id='chains')
    for chain in chains:
        chains_group.add(render_chain(dwg, chain, canvas))
    dwg.add(chains_group)
    dwg.save()
    logger.info("SVG-превью сохранено: %s (%d цепочек)", filename, len(chains))
    return Path(filename)


class SvgPreviewPlacement(RecordingPlacement):
    """Потребитель цепочек с выводом превью в SVG (по файлу на вид)."""

    def save(self, directory: Union[str, Path]) -> Dict[str, Path]:
        """Записать превью всех видов с принятыми цепочками.

        Args:
            directory: каталог для файлов (создаётся при необходимости).

        Returns:
            Словарь имя вида → путь к SVG.
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        written: Dict[str, Path] = {}
        for view_name, chains in self.chains_by_view().items():
            path = directory / f"{_safe_filename(view_name)}.svg"
            written[view_name] = render_view(path, view_name, chains)
        if not written:
            logger.warning("SVG-превью: нет цепочек для вывода")
        return written
