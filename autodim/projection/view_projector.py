"""
Проецирование 3D-геометрии в 2D-систему координат вида и обратно.

Для планов (этаж, потолок, зоны) проекция — отбрасывание Z,
для разрезов и фасадов — разложение по базису вида [right, up]
относительно origin. Все функции чистые, без побочных эффектов.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import numpy as np
from numpy.linalg import norm

from autodim.config import MIN_PROJECTED_LENGTH

logger = logging.getLogger(__name__)


class ViewType(Enum):
    FLOOR_PLAN = "FloorPlan"
    CEILING_PLAN = "CeilingPlan"
    AREA_PLAN = "AreaPlan"
    SECTION = "Section"
    ELEVATION = "Elevation"
    DETAIL = "Detail"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Any) -> 'ViewType':
        """Разобрать тип вида из строки ("FloorPlan", "floor_plan", "section").

        Типы хоста, которых нет в перечислении (ThreeD, Legend, DraftingView...),
        становятся OTHER: такой вид загружается, но не образмеривается.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().replace("_", "").replace(" ", "").lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        logger.debug("Тип вида %r не поддерживается, считается OTHER", value)
        return cls.OTHER

    @property
    def is_plan(self) -> bool:
        return self in PLAN_VIEW_TYPES

    @property
    def is_section_like(self) -> bool:
        """Разрез или фасад: проекция по базису right/up."""
        return self in (ViewType.SECTION, ViewType.ELEVATION)


PLAN_VIEW_TYPES = frozenset({ViewType.FLOOR_PLAN, ViewType.CEILING_PLAN, ViewType.AREA_PLAN})

DIMENSIONABLE_VIEW_TYPES = frozenset({
    ViewType.FLOOR_PLAN, ViewType.CEILING_PLAN, ViewType.AREA_PLAN,
    ViewType.SECTION, ViewType.ELEVATION, ViewType.DETAIL,
})


def _vec3(value: Any) -> np.ndarray:
    return np.asarray(value, dtype=float).reshape(3)


def _unit(v: np.ndarray) -> np.ndarray:
    n = norm(v)
    return v / n if n > 1e-12 else v


@dataclass
class ViewContext:
    """Контекст проецирования одного вида.

    Attributes:
        name: имя вида (для логов и отчётов).
        view_type: тип вида.
        origin: начало системы координат вида (3D).
        right, up: базис плоскости вида (нормализуются при создании).
        view_direction: направление взгляда — нормаль плоскости вида.
        level_elevation: отметка уровня плана; Z при обратном преобразовании.
        is_template: шаблон вида — не образмеривается.
    """
    name: str
    view_type: ViewType = ViewType.FLOOR_PLAN
    origin: np.ndarray = field(default_factory=lambda: np.zeros(3))
    right: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0]))
    up: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.0, 0.0]))
    view_direction: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, -1.0]))
    level_elevation: float = 0.0
    is_template: bool = False

    def __post_init__(self) -> None:
        self.view_type = ViewType.parse(self.view_type)
        self.origin = _vec3(self.origin)
        self.right = _unit(_vec3(self.right))
        self.up = _unit(_vec3(self.up))
        self.view_direction = _unit(_vec3(self.view_direction))

    @property
    def projects_like_plan(self) -> bool:
        """Разрез/фасад — по базису; все прочие типы — как план."""
        return not self.view_type.is_section_like


# ---------------------------------------------------------------------------
# Прямое преобразование 3D → 2D
# ---------------------------------------------------------------------------

def project_point(point3d: Any, view: ViewContext) -> np.ndarray:
    """Спроецировать 3D-точку в систему координат вида.

    Args:
        point3d: точка (x, y, z)
        view: контекст вида

    Returns:
        2D-точка (x, y)
    """
    p = _vec3(point3d)
    if view.projects_like_plan:
        return np.array([p[0], p[1]])
    rel = p - view.origin
    return np.array([float(np.dot(rel, view.right)), float(np.dot(rel, view.up))])


def project_direction(dir3d: Any, view: ViewContext) -> Optional[np.ndarray]:
    """Спроецировать 3D-направление и нормализовать.

    Returns:
        Единичный 2D-вектор или None, если длина проекции < 1e-3
        (направление вдоль нормали вида — не нулевой вектор, а «нет направления»).
    """
    d = _vec3(dir3d)
    if view.projects_like_plan:
        v = np.array([d[0], d[1]])
    else:
        v = np.array([float(np.dot(d, view.right)), float(np.dot(d, view.up))])
    length = norm(v)
    if length < MIN_PROJECTED_LENGTH:
        return None
    return v / length


def view_plane_normal(view: ViewContext) -> np.ndarray:
    """Нормаль плоскости вида: +Z для планов, направление взгляда для разрезов."""
    if view.projects_like_plan:
        return np.array([0.0, 0.0, 1.0])
    return view.view_direction


def view_plane_origin(view: ViewContext) -> np.ndarray:
    """Точка на плоскости вида (для планов — на отметке уровня)."""
    if view.projects_like_plan:
        return np.array([view.origin[0], view.origin[1], view.level_elevation])
    return view.origin


# ---------------------------------------------------------------------------
# Обратное преобразование 2D → 3D
# ---------------------------------------------------------------------------

def view_point_to_3d(point2d: Any, view: ViewContext) -> np.ndarray:
    """Перевести 2D-точку вида обратно в 3D.

    План: Z = отметка уровня; разрез/фасад: origin + right*x + up*y.
    """
    x, y = float(point2d[0]), float(point2d[1])
    if view.projects_like_plan:
        return np.array([x, y, view.level_elevation])
    return view.origin + view.right * x + view.up * y


def view_direction_to_3d(dir2d: Any, view: ViewContext) -> np.ndarray:
    """Перевести 2D-направление в 3D (нормализованное, иначе (1, 0, 0))."""
    x, y = float(dir2d[0]), float(dir2d[1])
    if view.projects_like_plan:
        v = np.array([x, y, 0.0])
    else:
        v = view.right * x + view.up * y
    length = norm(v)
    if length < MIN_PROJECTED_LENGTH:
        return np.array([1.0, 0.0, 0.0])
    return v / length


def is_dimensionable_view(view: ViewContext) -> bool:
    """Можно ли расставлять размеры на этом виде."""
    if view.is_template:
        logger.debug("Вид %s — шаблон, пропущен", view.name)
        return False
    if view.view_type not in DIMENSIONABLE_VIEW_TYPES:
        logger.debug("Вид %s: тип %s не поддерживается", view.name, view.view_type.value)
        return False
    return True
