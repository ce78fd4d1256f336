"""
Проход одного вида: от сбора кандидатов до создания цепочек.

Стадии: IDLE → COLLECT_CANDIDATES → GROUP_BY_DIRECTION → MERGE_COLLINEAR →
SELECT_REPRESENTATIVES → COMPOSE_CHAINS → DONE.

Каждая стадия работает только с результатом предыдущей. Пустой результат
любой стадии означает «ноль цепочек для вида» — обычный исход, не ошибка.
Отказ потребителя учитывается для конкретной цепочки, остальные цепочки
вида продолжают создаваться.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Collection, Dict, Hashable, List, Optional, Tuple

import numpy as np

from autodim.chains.collector import collect_items
from autodim.chains.collinear import find_collinear_groups, has_selected_dimensionable
from autodim.chains.composer import ChainGeometry, compose_chain, nudge_chains
from autodim.chains.grouping import group_by_parallel_directions
from autodim.chains.representative import select_representative
from autodim.items import ProjectedItem
from autodim.logging_config import LogContext, log_timing
from autodim.placement import DimensionPlacement
from autodim.project_config import DimensionSettings
from autodim.projection.view_projector import ViewContext, is_dimensionable_view
from autodim.provider import ElementGeometryProvider

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    IDLE = "idle"
    COLLECT_CANDIDATES = "collect_candidates"
    GROUP_BY_DIRECTION = "group_by_direction"
    MERGE_COLLINEAR = "merge_collinear"
    SELECT_REPRESENTATIVES = "select_representatives"
    COMPOSE_CHAINS = "compose_chains"
    DONE = "done"


@dataclass
class ViewResult:
    """Итог прохода одного вида."""
    view_name: str
    stage: PipelineStage = PipelineStage.IDLE
    candidates: int = 0
    buckets: int = 0
    eligible_buckets: int = 0
    chains_composed: int = 0
    chains_created: int = 0
    chains_rejected: int = 0
    chains: List[ChainGeometry] = field(default_factory=list)
    error: Optional[str] = None
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None and self.chains_created > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "view": self.view_name,
            "stage": self.stage.value,
            "candidates": self.candidates,
            "buckets": self.buckets,
            "eligible_buckets": self.eligible_buckets,
            "chains_composed": self.chains_composed,
            "chains_created": self.chains_created,
            "chains_rejected": self.chains_rejected,
            "error": self.error,
            "elapsed_seconds": round(self.elapsed_seconds, 4),
            "chains": [
                {
                    "start": [round(float(v), 6) for v in chain.start3d],
                    "end": [round(float(v), 6) for v in chain.end3d],
                    "direction": [round(float(v), 6) for v in chain.direction3d],
                    "references": [str(ref) for ref in chain.references],
                    "elements": [item.element_id for item in chain.items],
                }
                for chain in self.chains
            ],
        }


def plan_chains(
    items: List[ProjectedItem],
    settings: DimensionSettings,
    result: ViewResult,
) -> List[Tuple[np.ndarray, List[ProjectedItem]]]:
    """Группировка, слияние и выбор представителей.

    Returns:
        Пары (направление, представители по возрастанию позиции), по одной
        на параллельную группу, где набралось не меньше двух представителей.
    """
    result.stage = PipelineStage.GROUP_BY_DIRECTION
    buckets = group_by_parallel_directions(items, settings.parallel_tolerance)
    result.buckets = len(buckets)

    planned = []
    for bucket in buckets:
        if not has_selected_dimensionable(bucket.items):
            logger.debug("Группа (%.3f, %.3f): нет выбранных элементов",
                         bucket.direction[0], bucket.direction[1])
            continue
        result.eligible_buckets += 1

        result.stage = PipelineStage.MERGE_COLLINEAR
        groups = find_collinear_groups(bucket, settings)

        result.stage = PipelineStage.SELECT_REPRESENTATIVES
        representatives = [select_representative(group) for group in groups]
        if len(representatives) < 2:
            logger.debug("Группа (%.3f, %.3f): представителей %d, нужно 2",
                         bucket.direction[0], bucket.direction[1], len(representatives))
            continue

        representatives.sort(key=lambda item: item.position_along_direction)
        planned.append((bucket.direction, representatives))
    return planned


def process_view(
    provider: ElementGeometryProvider,
    view: ViewContext,
    selected_ids: Collection[Hashable],
    settings: DimensionSettings,
    consumer: DimensionPlacement,
) -> ViewResult:
    """Создать размерные цепочки для одного вида.

    Args:
        provider: поставщик геометрии
        view: контекст вида
        selected_ids: выбор пользователя
        settings: неизменяемые настройки прохода
        consumer: потребитель, создающий аннотации

    Returns:
        ViewResult; исключения геометрии сюда не доходят.
    """
    result = ViewResult(view_name=view.name)

    if not is_dimensionable_view(view):
        result.error = f"View type {view.view_type.value} cannot be dimensioned"
        return result

    with LogContext(view=view.name), log_timing(logger, f"View {view.name}") as timing:
        result.stage = PipelineStage.COLLECT_CANDIDATES
        items = collect_items(provider, view, selected_ids, settings)
        result.candidates = len(items)

        planned = plan_chains(items, settings, result) if items else []

        result.stage = PipelineStage.COMPOSE_CHAINS
        accepted: List[ChainGeometry] = []
        for direction, representatives in planned:
            chain = compose_chain(direction, representatives, view, settings)
            if chain is None:
                continue
            result.chains_composed += 1
            if _place(consumer, chain):
                accepted.append(chain)
            else:
                result.chains_rejected += 1

        if accepted and settings.nudge_chains:
            moved = nudge_chains(accepted, view, settings.nudge_distance)
            accepted = [new if consumer.move(old, new) else old
                        for old, new in zip(accepted, moved)]

        result.chains = accepted
        result.chains_created = len(accepted)
        result.stage = PipelineStage.DONE
        timing.update(candidates=result.candidates, chains=result.chains_created)

    result.elapsed_seconds = timing.get("elapsed_seconds", 0.0)
    logger.info("%s: %d chain(s) from %d candidate(s)",
                view.name, result.chains_created, result.candidates)
    return result


def _place(consumer: DimensionPlacement, chain: ChainGeometry) -> bool:
    try:
        return bool(consumer.place(chain))
    except Exception as e:
        logger.warning("Consumer failed on chain in %s: %s", chain.view_name, e)
        return False
