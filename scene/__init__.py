"""HexGlobe — Scene Package.

Build scheduling, globe layer orchestration, and result persistence.
"""
