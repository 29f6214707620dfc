"""Two-phase migration of an export tree into Notion."""

from .models import MigrationSummary, ProgressEvent, PHASE_CREATE, PHASE_POPULATE
from .walker import TreeWalker, DEFAULT_PAGE_LIMIT

__all__ = [
    'TreeWalker',
    'MigrationSummary',
    'ProgressEvent',
    'PHASE_CREATE',
    'PHASE_POPULATE',
    'DEFAULT_PAGE_LIMIT',
]
