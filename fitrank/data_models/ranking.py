"""
Ranking data models for friends leaderboards.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class RankingEntry:
    """Single ranked row."""
    id: str
    bpr: float
    competitions_count: int
    is_provisional: bool
    weighted_average: float
    rank: int


@dataclass(frozen=True)
class RankingResult:
    """A user's standing among their friends."""
    friends_rank: int
    total_friends: int
    friends_percentile: int  # 0-100, higher is better
    bpr_score: float
    is_provisional: bool
    competitions_count: int
    rankings: Tuple[RankingEntry, ...]
    
    def entry_for(self, user_id: str) -> Optional[RankingEntry]:
        """Get the ranking row for a user, or None if not ranked."""
        for entry in self.rankings:
            if entry.id == user_id:
                return entry
        return None
