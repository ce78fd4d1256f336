"""
Dimension placement consumers.

A consumer receives a composed ChainGeometry (3D direction, start, end and
the ordered references) and materializes it. It reports acceptance per
chain; a rejection never aborts the view. After all chains of a view are
placed, the pipeline may call move() with a nudged copy of each accepted
chain. discard() withdraws a chain that was accepted but must not stay,
for example when another consumer of a composite refused it.
"""

import logging
from typing import Dict, List, Protocol, Sequence

from autodim.chains.composer import ChainGeometry

logger = logging.getLogger(__name__)


class DimensionPlacement(Protocol):
    """Consumer of composed dimension chains."""

    def place(self, chain: ChainGeometry) -> bool: ...

    def move(self, chain: ChainGeometry, moved: ChainGeometry) -> bool: ...

    def discard(self, chain: ChainGeometry) -> bool: ...


class RecordingPlacement:
    """In-memory consumer that keeps accepted chains per view.

    Models host-side validation: a chain whose references collapse to
    fewer than two distinct handles is rejected.
    """

    def __init__(self) -> None:
        self.chains: List[ChainGeometry] = []
        self.rejected: List[ChainGeometry] = []

    def place(self, chain: ChainGeometry) -> bool:
        distinct = set(chain.references)
        if len(distinct) < 2:
            logger.warning("Chain rejected in %s: %d distinct reference(s)",
                           chain.view_name, len(distinct))
            self.rejected.append(chain)
            return False
        self.chains.append(chain)
        return True

    def move(self, chain: ChainGeometry, moved: ChainGeometry) -> bool:
        for i, existing in enumerate(self.chains):
            if existing is chain:
                self.chains[i] = moved
                return True
        return False

    def discard(self, chain: ChainGeometry) -> bool:
        for i, existing in enumerate(self.chains):
            if existing is chain:
                del self.chains[i]
                return True
        return False

    def chains_by_view(self) -> Dict[str, List[ChainGeometry]]:
        result: Dict[str, List[ChainGeometry]] = {}
        for chain in self.chains:
            result.setdefault(chain.view_name, []).append(chain)
        return result

    def __len__(self) -> int:
        return len(self.chains)


class CompositePlacement:
    """Fans every chain out to several consumers.

    A chain counts as placed only if every consumer accepts it. Consumers
    are asked in order; on the first refusal the chain is discarded from
    those that already accepted it, so no output keeps a rejected chain.
    """

    def __init__(self, consumers: Sequence[DimensionPlacement]):
        self.consumers = list(consumers)

    def place(self, chain: ChainGeometry) -> bool:
        accepted: List[DimensionPlacement] = []
        for consumer in self.consumers:
            if not consumer.place(chain):
                for earlier in accepted:
                    earlier.discard(chain)
                logger.debug("Chain in %s withdrawn from %d consumer(s)",
                             chain.view_name, len(accepted))
                return False
            accepted.append(consumer)
        return True

    def move(self, chain: ChainGeometry, moved: ChainGeometry) -> bool:
        results = [consumer.move(chain, moved) for consumer in self.consumers]
        return all(results)

    def discard(self, chain: ChainGeometry) -> bool:
        results = [consumer.discard(chain) for consumer in self.consumers]
        return all(results)
