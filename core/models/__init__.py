# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas shared by controllers:
# - paging.py: Pageable protocol, PageParams and the Page envelope
#
# These models define the "contract" between API and clients.
# =============================================================================

from .paging import (
    MAX_PAGE_SIZE,
    Page,
    Pageable,
    PageParams,
    apply_paging,
)

__all__ = [
    "MAX_PAGE_SIZE",
    "Page",
    "Pageable",
    "PageParams",
    "apply_paging",
]
