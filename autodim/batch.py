"""
Multi-view batch processing.

Provides:
- Sequential per-view dimensioning (views share no state)
- Progress tracking and reporting
- Error isolation: a failing view never aborts the batch

Usage:
    from autodim.batch import process_views

    result = process_views(scene.provider, scene.views, scene.selection,
                           settings, RecordingPlacement())
    print(result.summary())
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Collection, Dict, Hashable, List, Optional, Sequence

from autodim.chains.pipeline import PipelineStage, ViewResult, process_view
from autodim.placement import DimensionPlacement
from autodim.project_config import DimensionSettings
from autodim.projection.view_projector import ViewContext
from autodim.provider import ElementGeometryProvider, Scene

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Result of dimensioning several views."""
    results: List[ViewResult] = field(default_factory=list)
    settings: DimensionSettings = field(default_factory=DimensionSettings)
    total_duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        """Number of views processed."""
        return len(self.results)

    @property
    def successful(self) -> int:
        """Views where at least one chain was created."""
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        """Views with an error or without chains."""
        return self.total - self.successful

    @property
    def total_chains(self) -> int:
        return sum(r.chains_created for r in self.results)

    @property
    def success_rate(self) -> float:
        """Share of views with chains, as percentage."""
        if self.total == 0:
            return 0.0
        return 100.0 * self.successful / self.total

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "Auto-Dimension Results",
            "=" * 40,
            f"Total dimension chains created: {self.total_chains}",
            f"Views processed: {self.total} ({self.successful} with chains)",
            f"Total time:      {self.total_duration_seconds:.2f}s",
            "",
        ]

        processed = [r for r in self.results if r.success]
        if processed:
            lines.append("Successfully processed views:")
            for r in processed:
                lines.append(f"  ✓ {r.view_name}: {r.chains_created} chain(s)")
            lines.append("")

        issues = [r for r in self.results if not r.success]
        if issues:
            lines.append("Views with issues:")
            for r in issues:
                reason = r.error or "no dimensions created"
                if r.chains_rejected:
                    reason += f" ({r.chains_rejected} chain(s) rejected)"
                lines.append(f"  - {r.view_name}: {reason}")
            lines.append("")

        lines.append("Settings used:")
        for key, value in self.settings.describe().items():
            lines.append(f"  • {key}: {value}")

        return "\n".join(lines)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'total_views': self.total,
            'successful': self.successful,
            'failed': self.failed,
            'total_chains': self.total_chains,
            'success_rate': self.success_rate,
            'total_duration_seconds': self.total_duration_seconds,
            'settings': self.settings.describe(),
            'views': [r.to_dict() for r in self.results],
        }


def process_single_view(
    provider: ElementGeometryProvider,
    view: ViewContext,
    selected_ids: Collection[Hashable],
    settings: DimensionSettings,
    consumer: DimensionPlacement,
) -> ViewResult:
    """Dimension one view; unexpected errors become a failed ViewResult."""
    try:
        return process_view(provider, view, selected_ids, settings, consumer)
    except Exception as e:
        logger.error("Failed to process view %s: %s", view.name, e)
        return ViewResult(view_name=view.name, stage=PipelineStage.IDLE, error=str(e))


def process_views(
    provider: ElementGeometryProvider,
    views: Sequence[ViewContext],
    selected_ids: Collection[Hashable],
    settings: DimensionSettings,
    consumer: DimensionPlacement,
    progress_callback: Optional[Callable[[int, int, ViewResult], None]] = None,
) -> BatchResult:
    """Dimension every view in order.

    Args:
        provider: Element geometry provider
        views: Views to process
        selected_ids: User selection
        settings: Immutable settings for the whole invocation
        consumer: Dimension placement consumer
        progress_callback: Called after each view: (current, total, result)

    Returns:
        BatchResult with per-view results
    """
    start_time = time.perf_counter()
    selected = frozenset(selected_ids)

    if not views:
        logger.warning("No views to process")
        return BatchResult(settings=settings, total_duration_seconds=time.perf_counter() - start_time)

    logger.info("Starting auto-dimension: %d view(s), %d selected element(s)",
                len(views), len(selected))

    results: List[ViewResult] = []
    for i, view in enumerate(views, 1):
        result = process_single_view(provider, view, selected, settings, consumer)
        results.append(result)

        if progress_callback:
            progress_callback(i, len(views), result)

        if result.error:
            status = "FAILED"
        elif result.chains_created == 0:
            status = "NO CHAINS"
            logger.warning("%s: no dimensions created", view.name)
        else:
            status = "OK"
        logger.info("[%d/%d] %s: %s (%.2fs)", i, len(views), view.name,
                    status, result.elapsed_seconds)

    batch_result = BatchResult(
        results=results,
        settings=settings,
        total_duration_seconds=time.perf_counter() - start_time,
    )

    logger.info(
        "Auto-dimension complete: %d chain(s), %d/%d views with chains in %.2fs",
        batch_result.total_chains, batch_result.successful, batch_result.total,
        batch_result.total_duration_seconds,
    )
    return batch_result


def process_scene(
    scene: Scene,
    settings: DimensionSettings,
    consumer: DimensionPlacement,
    view_names: Optional[Sequence[str]] = None,
    progress_callback: Optional[Callable[[int, int, ViewResult], None]] = None,
) -> BatchResult:
    """Dimension the views of a loaded scene (all, or the named ones).

    Raises:
        KeyError: If a requested view name is not in the scene.
    """
    if view_names:
        views = []
        for name in view_names:
            view = scene.view(name)
            if view is None:
                raise KeyError(f"View not found in scene: {name}")
            views.append(view)
    else:
        views = list(scene.views)
    return process_views(scene.provider, views, scene.selection, settings, consumer,
                         progress_callback=progress_callback)
