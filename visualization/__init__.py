"""HexGlobe — Visualization Package.

Static matplotlib previews of the globe line layers and tile map.
"""
