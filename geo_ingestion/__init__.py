"""HexGlobe — Geographic Ingestion Package.

GeoJSON parsing, boundary projection onto the sphere, and the source
document cache.
"""
