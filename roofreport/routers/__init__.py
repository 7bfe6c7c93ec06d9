"""Routers package: HTTP endpoint definitions.

Everything is versioned under /api/v1 (see v1/).
"""
