"""
Rating engine utilities.

- BPRCalculator: placement scoring, weighting, shrinkage and decay
- RankingUtility: deterministic ranking and percentiles
- CompetitionTransformer: raw record normalization
"""

from .bpr import BPRCalculator
from .ranking import RankingUtility
from .transform import CompetitionTransformer

__all__ = ['BPRCalculator', 'RankingUtility', 'CompetitionTransformer']
