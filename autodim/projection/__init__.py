from autodim.projection.view_projector import (
    ViewContext,
    ViewType,
    is_dimensionable_view,
    project_direction,
    project_point,
    view_direction_to_3d,
    view_plane_normal,
    view_point_to_3d,
)

__all__ = [
    "ViewContext",
    "ViewType",
    "is_dimensionable_view",
    "project_direction",
    "project_point",
    "view_direction_to_3d",
    "view_plane_normal",
    "view_point_to_3d",
]
