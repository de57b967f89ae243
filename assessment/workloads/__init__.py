"""
Workload generators for elastic dispatcher evaluation.

Provides scenarios for testing dispatcher behavior:
- Backlog Drain: Service capacity with no arrivals
- Steady Trickle: Scale-down under light load
- Traffic Surge: Rate-limited scale-up under a burst
- Denylist Mix: Admission filtering
"""

from .scenarios import (
    Workload,
    generate_backlog_drain,
    generate_denylist_mix,
    generate_steady_trickle,
    generate_traffic_surge,
)

__all__ = [
    "Workload",
    "generate_backlog_drain",
    "generate_steady_trickle",
    "generate_traffic_surge",
    "generate_denylist_mix",
]
