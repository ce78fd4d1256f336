"""
Поставщик геометрии элементов.

ElementGeometryProvider — интерфейс, через который ядро читает геометрию
хоста. SnapshotProvider — детерминированная реализация поверх JSON-снимка
сцены (load_scene), которой пользуются CLI и тесты.

Формат снимка:
{
    "views": [{"name": "Level 1", "view_type": "FloorPlan",
               "origin": [0, 0, 0], "right": [1, 0, 0], "up": [0, 1, 0],
               "view_direction": [0, 0, -1], "level_elevation": 0.0}],
    "elements": [{"id": 1, "kind": "element", "category": "Walls",
                  "name": "W1", "start": [0, 0, 0], "end": [0, 10, 0],
                  "width": 0.66, "views": ["Level 1"]}],
    "selection": [1]
}
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Hashable, Iterable, List, Optional, Protocol, Tuple, Union

import numpy as np

from autodim.items import ElementKind
from autodim.projection.view_projector import ViewContext

logger = logging.getLogger(__name__)

Segment3D = Tuple[np.ndarray, np.ndarray]

# Вид элемента в снимке → ElementKind
_KIND_NAMES = {
    "element": ElementKind.ELEMENT,
    "grid": ElementKind.GRID,
    "level": ElementKind.LEVEL,
    "curtain_wall": ElementKind.CURTAIN_WALL,
    "mullion": ElementKind.MULLION,
    "curtain_grid_line": ElementKind.CURTAIN_GRID_LINE,
}

REFERENCE_KEYS = ("centerline", "exterior_face", "interior_face", "geometric")


class SceneLoadError(Exception):
    """Снимок сцены не читается или содержит некорректные данные."""


@dataclass
class RawElement:
    """Элемент хоста в том виде, в каком его отдаёт поставщик.

    start/end — ось элемента (None, если её нет). Для уровней допускается
    только elevation; members — идентификаторы импостов и линий сетки
    витража; views — имена видов, где элемент виден (пусто — во всех).
    """
    element_id: Hashable
    kind: ElementKind
    name: str = ""
    category: str = ""
    type_name: str = ""
    start: Optional[np.ndarray] = None
    end: Optional[np.ndarray] = None
    width: float = 0.0
    elevation: Optional[float] = None
    references: Dict[str, Any] = field(default_factory=dict)
    parent_wall_id: Optional[Hashable] = None
    members: List[Hashable] = field(default_factory=list)
    views: List[str] = field(default_factory=list)

    @property
    def has_location_curve(self) -> bool:
        return self.start is not None and self.end is not None

    def visible_in(self, view: ViewContext) -> bool:
        return not self.views or view.name in self.views


class ElementGeometryProvider(Protocol):
    """Интерфейс поставщика геометрии (детерминирован для снимка документа)."""

    def get_centerline(self, element: RawElement) -> Optional[Segment3D]: ...

    def get_kind(self, element: RawElement) -> ElementKind: ...

    def get_width(self, element: RawElement) -> float: ...

    def get_references(self, element: RawElement) -> Dict[str, Any]: ...

    def elements_in_view(self, view: ViewContext) -> List[RawElement]: ...

    def all_grids(self) -> List[RawElement]: ...

    def curtain_wall_members(self, wall: RawElement) -> List[RawElement]: ...


def _sort_key(element_id: Hashable) -> Tuple[int, Any]:
    # Числовые id раньше строковых, чтобы сравнение не падало на смешанных типах
    if isinstance(element_id, (int, float)):
        return (0, element_id)
    return (1, str(element_id))


class SnapshotProvider:
    """Поставщик геометрии поверх неизменяемого снимка сцены.

    Перечисление элементов всегда по возрастанию id, чтобы направление
    параллельной группы («первый пришедший») было воспроизводимым.
    """

    def __init__(self, elements: Iterable[RawElement]):
        self._elements: Dict[Hashable, RawElement] = {}
        for element in elements:
            if element.element_id in self._elements:
                raise ValueError(f"Duplicate element id: {element.element_id!r}")
            self._elements[element.element_id] = element
        self._ordered = sorted(self._elements.values(), key=lambda e: _sort_key(e.element_id))

    def __len__(self) -> int:
        return len(self._elements)

    def get(self, element_id: Hashable) -> Optional[RawElement]:
        return self._elements.get(element_id)

    def get_centerline(self, element: RawElement) -> Optional[Segment3D]:
        if not element.has_location_curve:
            return None
        return element.start, element.end

    def get_kind(self, element: RawElement) -> ElementKind:
        return element.kind

    def get_width(self, element: RawElement) -> float:
        return element.width

    def get_references(self, element: RawElement) -> Dict[str, Any]:
        """Ссылки элемента; без явных — синтетические "<id>:<тип>".

        Грани есть только у элементов ненулевой толщины.
        """
        refs = {key: element.references.get(key) for key in REFERENCE_KEYS}
        if refs["geometric"] is None:
            refs["geometric"] = f"{element.element_id}"
        if refs["centerline"] is None and element.has_location_curve:
            refs["centerline"] = f"{element.element_id}:centerline"
        if element.width > 0 and element.kind is ElementKind.ELEMENT:
            if refs["exterior_face"] is None:
                refs["exterior_face"] = f"{element.element_id}:exterior"
            if refs["interior_face"] is None:
                refs["interior_face"] = f"{element.element_id}:interior"
        return refs

    def elements_in_view(self, view: ViewContext) -> List[RawElement]:
        return [e for e in self._ordered if e.visible_in(view)]

    def all_grids(self) -> List[RawElement]:
        return [e for e in self._ordered if e.kind is ElementKind.GRID]

    def curtain_wall_members(self, wall: RawElement) -> List[RawElement]:
        members = []
        for member_id in wall.members:
            member = self._elements.get(member_id)
            if member is None:
                logger.debug("Витраж %s: элемент %s не найден", wall.element_id, member_id)
                continue
            members.append(member)
        return members


# ---------------------------------------------------------------------------
# Загрузка снимка
# ---------------------------------------------------------------------------

@dataclass
class Scene:
    """Загруженный снимок: поставщик, виды и выбор пользователя."""
    provider: SnapshotProvider
    views: List[ViewContext]
    selection: List[Hashable]
    source: Optional[Path] = None

    def view(self, name: str) -> Optional[ViewContext]:
        for view in self.views:
            if view.name == name:
                return view
        return None


def _point(value: Any, what: str) -> Optional[np.ndarray]:
    if value is None:
        return None
    arr = np.asarray(value, dtype=float)
    if arr.shape == (2,):
        arr = np.append(arr, 0.0)
    if arr.shape != (3,):
        raise SceneLoadError(f"{what}: expected 3 coordinates, got {value!r}")
    return arr


def element_from_dict(data: Dict[str, Any]) -> RawElement:
    """Построить RawElement из записи снимка.

    Raises:
        SceneLoadError: нет id или неизвестный kind.
    """
    if "id" not in data:
        raise SceneLoadError(f"Element without id: {data!r}")
    element_id = data["id"]
    kind_name = str(data.get("kind", "element")).lower()
    if kind_name not in _KIND_NAMES:
        raise SceneLoadError(f"Element {element_id!r}: unknown kind {kind_name!r}")
    what = f"Element {element_id!r}"
    return RawElement(
        element_id=element_id,
        kind=_KIND_NAMES[kind_name],
        name=str(data.get("name", "")),
        category=str(data.get("category", "")),
        type_name=str(data.get("type_name", "")),
        start=_point(data.get("start"), what),
        end=_point(data.get("end"), what),
        width=float(data.get("width", 0.0)),
        elevation=None if data.get("elevation") is None else float(data["elevation"]),
        references=dict(data.get("references", {})),
        parent_wall_id=data.get("parent_wall_id"),
        members=list(data.get("members", [])),
        views=list(data.get("views", [])),
    )


def view_from_dict(data: Dict[str, Any]) -> ViewContext:
    """Построить ViewContext из записи снимка.

    Raises:
        SceneLoadError: нет имени или неверные координаты базиса.
    """
    if "name" not in data:
        raise SceneLoadError(f"View without name: {data!r}")
    kwargs: Dict[str, Any] = {"name": str(data["name"])}
    for key in ("origin", "right", "up", "view_direction"):
        if key in data:
            kwargs[key] = _point(data[key], f"View {data['name']!r}.{key}")
    kwargs["is_template"] = bool(data.get("is_template", False))
    try:
        if "level_elevation" in data:
            kwargs["level_elevation"] = float(data["level_elevation"])
        return ViewContext(view_type=data.get("view_type", "FloorPlan"), **kwargs)
    except (TypeError, ValueError) as e:
        raise SceneLoadError(f"View {data['name']!r}: {e}") from e


def scene_from_dict(data: Dict[str, Any], source: Optional[Path] = None) -> Scene:
    """Построить сцену из словаря снимка."""
    try:
        elements = [element_from_dict(e) for e in data.get("elements", [])]
        provider = SnapshotProvider(elements)
    except (TypeError, ValueError) as e:
        raise SceneLoadError(str(e)) from e
    views = [view_from_dict(v) for v in data.get("views", [])]
    selection = list(data.get("selection", []))
    unknown = [s for s in selection if provider.get(s) is None]
    if unknown:
        logger.warning("Selection references unknown elements: %s", unknown)
    return Scene(provider=provider, views=views, selection=selection, source=source)


def load_scene(path: Union[str, Path]) -> Scene:
    """Загрузить JSON-снимок сцены.

    Raises:
        SceneLoadError: файл не найден, не JSON или некорректные данные.
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise SceneLoadError(f"Scene file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise SceneLoadError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise SceneLoadError(f"{path}: top-level object expected")

    scene = scene_from_dict(data, source=path)
    logger.info("Scene loaded: %s (%d elements, %d views)",
                path.name, len(scene.provider), len(scene.views))
    return scene
