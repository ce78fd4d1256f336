"""
DXF output for dimension chains.

DxfChainWriter is a placement consumer: it records accepted chains like
RecordingPlacement and writes them to a DXF file on save(). Each chain
becomes a run of aligned dimensions between consecutive references,
drawn in view coordinates. Every view gets its own layer so that views
sharing the same model space can be toggled independently.

Layer naming convention:
- ELEMENTS - dimensioned elements (short centerline strokes or points)
- EXTENSION - witness lines from elements to the dimension line
- DIM-<view> - dimension entities of one view

Usage:
    from autodim.export.dxf_writer import DxfChainWriter

    writer = DxfChainWriter()
    process_views(provider, views, selection, settings, writer)
    writer.save('chains.dxf')
"""

import logging
import re
from pathlib import Path
from typing import Optional, Union

import ezdxf
from ezdxf import units

from autodim.chains.composer import ChainGeometry
from autodim.placement import RecordingPlacement

logger = logging.getLogger(__name__)

DIMSTYLE_NAME = 'AUTODIM'
ELEMENT_HALF_LENGTH = 0.75

LAYERS = {
    'ELEMENTS': {'color': 7, 'linetype': 'CONTINUOUS', 'lineweight': 35},  # White/Black
    'EXTENSION': {'color': 8, 'linetype': 'CONTINUOUS', 'lineweight': 13},  # Gray
}
DIMENSION_LAYER_COLOR = 3  # Green


def view_layer_name(view_name: str) -> str:
    """Layer name for a view's dimensions (DXF forbids <>/\\":;?*|=`)."""
    cleaned = re.sub(r'[<>/\\":;?*|=`,]+', '_', view_name).strip()
    return f"DIM-{cleaned or 'VIEW'}"


class DxfChainWriter(RecordingPlacement):
    """Placement consumer that writes accepted chains to DXF."""

    def __init__(self, dxf_version: str = 'R2010'):
        """Initialize writer.

        Args:
            dxf_version: DXF version (R2000, R2004, R2007, R2010, R2013, R2018)
        """
        super().__init__()
        self.dxf_version = dxf_version
        self.doc: Optional[ezdxf.document.Drawing] = None
        self.msp = None  # Modelspace

    def _create_drawing(self) -> None:
        """Create new DXF document with layers and dimension style."""
        self.doc = ezdxf.new(self.dxf_version, units=units.FT)
        self.msp = self.doc.modelspace()

        for name, props in LAYERS.items():
            self.doc.layers.add(
                name,
                color=props['color'],
                linetype=props.get('linetype', 'CONTINUOUS'),
                lineweight=props.get('lineweight', 25),
            )

        dimstyle = self.doc.dimstyles.new(DIMSTYLE_NAME)
        dimstyle.dxf.dimtxt = 0.25   # Text height
        dimstyle.dxf.dimgap = 0.05   # Gap from dimension line
        dimstyle.dxf.dimtsz = 0.1    # Architectural ticks instead of arrows
        dimstyle.dxf.dimexe = 0.1    # Extension beyond dimension line
        dimstyle.dxf.dimexo = 0.05   # Offset from origin
        dimstyle.dxf.dimdec = 2      # Decimal places

    def _ensure_layer(self, name: str) -> None:
        if name not in self.doc.layers:
            self.doc.layers.add(name, color=DIMENSION_LAYER_COLOR, lineweight=18)

    def add_chain(self, chain: ChainGeometry) -> int:
        """Draw one chain into the document.

        Args:
            chain: Accepted chain in view coordinates

        Returns:
            Number of dimension entities added
        """
        if self.msp is None:
            raise RuntimeError("Drawing not created. Call save() or _create_drawing() first.")

        layer = view_layer_name(chain.view_name)
        self._ensure_layer(layer)

        for item in chain.items:
            point = item.projected_point
            if item.projected_direction is not None:
                half = item.projected_direction * ELEMENT_HALF_LENGTH
                self.msp.add_line(tuple(point - half), tuple(point + half),
                                  dxfattribs={'layer': 'ELEMENTS'})
            else:
                self.msp.add_point(tuple(point), dxfattribs={'layer': 'ELEMENTS'})

            foot = chain.point_on_line(float(item.projected_point @ chain.direction))
            self.msp.add_line(tuple(point), tuple(foot), dxfattribs={'layer': 'EXTENSION'})

        self.msp.add_line(tuple(chain.start), tuple(chain.end), dxfattribs={'layer': layer})

        count = 0
        positions = chain.positions
        for left, right in zip(positions, positions[1:]):
            if abs(right - left) < 1e-9:
                continue
            dim = self.msp.add_aligned_dim(
                p1=tuple(chain.point_on_line(left)),
                p2=tuple(chain.point_on_line(right)),
                distance=0.0,
                dimstyle=DIMSTYLE_NAME,
                dxfattribs={'layer': layer},
            )
            dim.render()
            count += 1
        return count

    def save(self, path: Union[str, Path]) -> Path:
        """Save all accepted chains to a DXF file.

        Args:
            path: Output file path

        Returns:
            Path of the written file
        """
        self._create_drawing()
        total = 0
        for chain in self.chains:
            total += self.add_chain(chain)

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.doc.saveas(str(path))
        logger.info("DXF saved: %s (%d chain(s), %d dimension(s))", path, len(self.chains), total)
        return path
