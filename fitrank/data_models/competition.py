"""
Competition data models for the Bayesian Placement Rating engine.

Provides immutable data transfer objects for a user's competition history
and the rating computed from it.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Union

from fitrank.constants import BPRConstants


@dataclass(frozen=True)
class CompetitionResult:
    """One user's placement in one completed competition."""
    competition_id: str
    finish_rank: int  # 1 = first place
    field_size: int   # Participants ranked in the competition
    ended_at: datetime
    points: Union[int, float] = 0  # Display only, not used in the rating
    
    def is_valid(self) -> bool:
        """Check rank and field size invariants (1 <= rank <= field size)."""
        if isinstance(self.finish_rank, bool) or isinstance(self.field_size, bool):
            return False
        if not isinstance(self.finish_rank, int) or not isinstance(self.field_size, int):
            return False
        return 1 <= self.finish_rank <= self.field_size


@dataclass(frozen=True)
class BPRResult:
    """Rating computed for a single user."""
    bpr: float
    competitions_count: int
    is_provisional: bool
    weighted_average: float
    total_weight: float
    
    @classmethod
    def default(cls) -> 'BPRResult':
        """Neutral rating for a user with no usable history."""
        return cls(
            bpr=BPRConstants.MU0,
            competitions_count=0,
            is_provisional=True,
            weighted_average=BPRConstants.MU0,
            total_weight=0.0
        )


@dataclass(frozen=True)
class BPRDebugInfo:
    """Human-readable breakdown of a rating, used for tooltips."""
    score: float
    competitions: int
    status: str
    raw_performance: float
    description: str
