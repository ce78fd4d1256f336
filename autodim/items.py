"""
Модель данных движка размерных цепочек.

Типы:
  - ElementKind     — вид элемента (линейный, перпендикулярный, ось, уровень, витраж...)
  - ToleranceClass  — класс допуска коллинеарности
  - ReferenceType   — тип опорной ссылки (ось, наружная/внутренняя грань, авто)
  - ProjectedItem   — элемент, спроецированный в 2D-систему координат вида

ProjectedItem создаётся заново для каждого обрабатываемого вида и живёт
только в пределах одного прохода. Все поля, кроме position_along_direction,
после создания не меняются.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Hashable, Optional

import numpy as np

from autodim.config import CURTAIN_KEYWORDS, STRUCTURAL_KEYWORDS


class ElementKind(Enum):
    """Вид элемента-кандидата."""
    ELEMENT = "Element"
    PERPENDICULAR_ELEMENT = "PerpendicularElement"
    GRID = "Grid"
    LEVEL = "Level"
    CURTAIN_WALL = "CurtainWall"
    MULLION = "Mullion"
    CURTAIN_GRID_LINE = "CurtainGridLine"

    @property
    def is_dimensionable(self) -> bool:
        """Может ли выбранный элемент этого вида породить цепочку."""
        return self in DIMENSIONABLE_KINDS

    @property
    def is_curtain(self) -> bool:
        return self in (ElementKind.CURTAIN_WALL, ElementKind.MULLION,
                        ElementKind.CURTAIN_GRID_LINE)


DIMENSIONABLE_KINDS = frozenset({
    ElementKind.ELEMENT,
    ElementKind.PERPENDICULAR_ELEMENT,
    ElementKind.CURTAIN_WALL,
    ElementKind.MULLION,
    ElementKind.CURTAIN_GRID_LINE,
})


class ToleranceClass(Enum):
    """Класс адаптивного допуска коллинеарности."""
    STRUCTURAL = "structural"
    GRID = "grid"
    CURTAIN_WALL = "curtain_wall"
    DEFAULT = "default"


class ReferenceType(Enum):
    """Тип опорной ссылки для размерной цепочки."""
    CENTERLINE = "centerline"
    EXTERIOR_FACE = "exterior_face"
    INTERIOR_FACE = "interior_face"
    AUTO = "auto"

    @classmethod
    def parse(cls, value: Any) -> 'ReferenceType':
        """Разобрать значение из конфигурации.

        Принимает сам enum, "exterior_face", "ExteriorFace", "Exterior Face".

        Raises:
            ValueError: неизвестный тип ссылки.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().replace(" ", "").replace("_", "").lower()
        for member in cls:
            if member.value.replace("_", "") == key:
                return member
        raise ValueError(f"Неизвестный тип ссылки: {value!r}")

    def describe(self) -> str:
        return _REFERENCE_DESCRIPTIONS[self]


_REFERENCE_DESCRIPTIONS = {
    ReferenceType.CENTERLINE: "Centerline - dimensions to element centerlines (default for grids, levels)",
    ReferenceType.EXTERIOR_FACE: "Exterior Face - dimensions to outer face of walls and elements",
    ReferenceType.INTERIOR_FACE: "Interior Face - dimensions to inner face of walls and elements",
    ReferenceType.AUTO: "Auto - reference chosen by element type",
}


def tolerance_class_for(kind: ElementKind, category: str) -> ToleranceClass:
    """Определить класс допуска по виду и категории элемента.

    Порядок проверки: несущие → оси → витражные элементы → по умолчанию.
    Несущие определяются по категории первыми, поэтому «Curtain Wall
    Mullions» (есть слово «wall») получает несущий допуск.
    """
    cat = (category or "").lower()
    if any(k in cat for k in STRUCTURAL_KEYWORDS):
        return ToleranceClass.STRUCTURAL
    if kind is ElementKind.GRID:
        return ToleranceClass.GRID
    if kind.is_curtain or any(k in cat for k in CURTAIN_KEYWORDS):
        return ToleranceClass.CURTAIN_WALL
    return ToleranceClass.DEFAULT


def perpendicular_axis(direction: np.ndarray) -> np.ndarray:
    """Ось, перпендикулярная направлению в 2D: поворот на 90° (-dy, dx).

    Для вырожденного направления возвращает (0, 1).
    """
    perp = np.array([-float(direction[1]), float(direction[0])])
    length = float(np.hypot(perp[0], perp[1]))
    if length < 1e-3:
        return np.array([0.0, 1.0])
    return perp / length


@dataclass(eq=False)
class ProjectedItem:
    """Элемент, спроецированный на плоскость вида.

    Attributes:
        element_id: идентификатор элемента у поставщика геометрии.
        kind: вид элемента.
        projected_point: 2D-точка в системе координат вида.
        projected_direction: единичное 2D-направление или None для точечных.
        is_point_element: нет надёжного направления в плоскости вида.
        is_selected: элемент входил в выбор пользователя.
        reference_*: непрозрачные ссылки хоста (хотя бы одна не None).
        element_width: толщина, только для смещения к граням.
        tolerance_class: класс допуска коллинеарности.
        position_along_direction: dot(point, direction) текущего прохода.
    """
    element_id: Hashable
    kind: ElementKind
    projected_point: np.ndarray
    projected_direction: Optional[np.ndarray] = None
    is_point_element: bool = False
    is_selected: bool = False
    reference_centerline: Any = None
    reference_exterior_face: Any = None
    reference_interior_face: Any = None
    reference_geometric: Any = None
    element_width: float = 0.0
    tolerance_class: ToleranceClass = ToleranceClass.DEFAULT
    name: str = ""
    category: str = ""
    is_curtain_wall_element: bool = False
    is_mullion: bool = False
    is_structural: bool = False
    parent_wall_id: Optional[Hashable] = None
    position_along_direction: float = 0.0

    def __post_init__(self) -> None:
        self.projected_point = np.asarray(self.projected_point, dtype=float)[:2]
        if self.projected_direction is not None:
            self.projected_direction = np.asarray(self.projected_direction, dtype=float)[:2]
        if self.is_point_element:
            self.projected_direction = None
        if all(ref is None for ref in (
            self.reference_centerline, self.reference_exterior_face,
            self.reference_interior_face, self.reference_geometric,
        )):
            raise ValueError(f"Элемент {self.element_id!r} без единой ссылки")

    # ------------------------------------------------------------------
    # Ссылки
    # ------------------------------------------------------------------

    def get_reference(self, reference_type: ReferenceType) -> Any:
        """Выбрать ссылку для размерной цепочки.

        Линии витражной сетки и импосты всегда по оси, оси и уровни —
        по собственной ссылке; для прочих — по типу с откатом к оси.
        """
        if self.kind is ElementKind.CURTAIN_GRID_LINE:
            return self.reference_centerline or self.reference_geometric
        if self.kind in (ElementKind.GRID, ElementKind.LEVEL):
            return self.reference_geometric or self.reference_centerline
        if self.kind is ElementKind.MULLION or self.is_mullion:
            return self.reference_centerline or self.reference_geometric

        if reference_type is ReferenceType.CENTERLINE:
            return self._centerline()
        if reference_type is ReferenceType.EXTERIOR_FACE:
            return self.reference_exterior_face or self._centerline()
        if reference_type is ReferenceType.INTERIOR_FACE:
            return self.reference_interior_face or self._centerline()
        return self._auto_reference()

    def _centerline(self) -> Any:
        return self.reference_centerline or self.reference_geometric

    def _auto_reference(self) -> Any:
        if self.is_curtain_wall_element or self.is_mullion:
            return self._centerline()
        if self.is_structural:
            return self.reference_exterior_face or self._centerline()
        return self._centerline()

    def adjusted_point(self, reference_type: ReferenceType) -> np.ndarray:
        """Проекционная точка, смещённая к грани на половину толщины.

        Для оси/авто, точечных элементов и нулевой толщины — без смещения.
        """
        if (reference_type in (ReferenceType.CENTERLINE, ReferenceType.AUTO)
                or self.element_width <= 1e-3
                or self.projected_direction is None):
            return self.projected_point
        offset = perpendicular_axis(self.projected_direction) * (self.element_width / 2.0)
        if reference_type is ReferenceType.EXTERIOR_FACE:
            return self.projected_point + offset
        return self.projected_point - offset

    # ------------------------------------------------------------------
    # Проверки и отладка
    # ------------------------------------------------------------------

    @property
    def is_linear(self) -> bool:
        return not self.is_point_element

    def is_valid_for_dimensioning(self) -> bool:
        """Есть ссылка оси/геометрии и, для линейных, направление."""
        if self.reference_geometric is None and self.reference_centerline is None:
            return False
        if self.is_point_element:
            return True
        d = self.projected_direction
        return d is not None and float(np.hypot(d[0], d[1])) >= 1e-3

    def display_name(self) -> str:
        label = {
            ElementKind.CURTAIN_GRID_LINE: "Curtain Grid Line",
            ElementKind.CURTAIN_WALL: "Curtain Wall",
        }.get(self.kind, self.kind.value)
        text = f"{label} {self.element_id} ({self.name or 'Unnamed'})"
        if self.parent_wall_id is not None:
            text += f" - Parent: {self.parent_wall_id}"
        return text

    def __repr__(self) -> str:
        x, y = self.projected_point
        return (f"ProjectedItem({self.kind.value} {self.element_id!r}, "
                f"pt=({x:.3f}, {y:.3f}), point={self.is_point_element}, "
                f"selected={self.is_selected})")
