"""HexGlobe — Sphere Engine Package.

Icosahedron subdivision, dual hexagon/pentagon tiling, tile adjacency,
great-circle line emission, and globe configuration.
"""
