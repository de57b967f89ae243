"""
Baseline dispatchers for comparison with elastic scaling.
"""

from .static_pool import StaticPoolDispatcher, create_static_pool

__all__ = [
    "StaticPoolDispatcher",
    "create_static_pool",
]
