"""Immutable data transfer objects for competition results and rankings."""

from .competition import CompetitionResult, BPRResult, BPRDebugInfo
from .ranking import RankingEntry, RankingResult

__all__ = [
    'CompetitionResult', 'BPRResult', 'BPRDebugInfo',
    'RankingEntry', 'RankingResult',
]
