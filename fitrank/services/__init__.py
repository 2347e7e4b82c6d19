"""
Services package for FitRank.

Services sit between the competition store and the rating engine.
"""

from .base import BaseService
from .friends_ranking import FriendsRankingService

__all__ = ['BaseService', 'FriendsRankingService']
