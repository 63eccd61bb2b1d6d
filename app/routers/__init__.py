# =============================================================================
# app/routers/ - Built-in Routes
# =============================================================================
# Only host-level endpoints live here:
# - health.py: Liveness and database readiness checks
#
# Business controllers are external and mounted through create_app(routers=...).
# =============================================================================

from . import health

__all__ = [
    "health",
]
