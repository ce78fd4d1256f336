"""Placement consumers that write chains to SVG previews and DXF."""
