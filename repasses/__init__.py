"""
REPASSES PAYOUT ENGINE
Monthly payout preview for a law firm's received installments.
"""

from .models import Competence
from .processor import RepassePreviewProcessor
from .sources import JsonSnapshotStore, Snapshot

__all__ = ['RepassePreviewProcessor', 'Competence', 'Snapshot', 'JsonSnapshotStore']
