# =============================================================================
# core/ - Shared Contracts
# =============================================================================
# Framework-agnostic models shared by controllers:
# - models/paging.py: Pageable protocol, PageParams, Page envelope
#
# Code in this package should NOT import from FastAPI.
# =============================================================================
