"""
Bayesian Placement Rating (BPR) calculations.

The rating rewards higher placements in larger fields, discounts stale results
with recency weighting, shrinks small samples toward a neutral prior so one-off
wins can't dominate, and decays users who haven't competed recently.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from fitrank.constants import BPRConstants, DisplayConstants
from fitrank.data_models.competition import CompetitionResult, BPRResult, BPRDebugInfo

logger = logging.getLogger(__name__)


def round_half_up(value: float, digits: int = 2) -> float:
    """Round to `digits` decimals with halves rounded up (not to even)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def sort_by_recency(results: Iterable[CompetitionResult]) -> List[CompetitionResult]:
    """Return a new list ordered most recent first. Ties keep input order."""
    return sorted(results, key=lambda result: as_utc(result.ended_at), reverse=True)


class BPRCalculator:
    """Handles Bayesian Placement Rating calculations"""
    
    @staticmethod
    def placement_score(rank: int, field_size: int) -> float:
        """
        Normalize a finishing position to a score between 0 and 1
        
        Callers must guarantee 1 <= rank <= field_size; other inputs give
        meaningless scores rather than errors.
        
        Args:
            rank: Finishing position (1 = first)
            field_size: Number of ranked participants
            
        Returns:
            1.0 for first place, 0.0 for last, linear in between.
            0.5 for solo competitions.
        """
        if field_size <= 1:
            return BPRConstants.SOLO_PLACEMENT_SCORE
        return (field_size - rank) / (field_size - 1)
    
    @staticmethod
    def size_weight(field_size: int) -> float:
        """
        Weight a competition by the size of its field
        
        Args:
            field_size: Number of ranked participants
            
        Returns:
            log2 of the field size (1.0 at 2 players, 6.0 at 64).
            0.5 for solo competitions.
        """
        if field_size <= 1:
            return BPRConstants.SOLO_SIZE_WEIGHT
        return math.log2(max(field_size, 2))
    
    @staticmethod
    def recency_weight(position: int) -> float:
        """Recency multiplier for the 1-indexed position (1 = most recent)"""
        return BPRConstants.DECAY ** position
    
    @staticmethod
    def apply_shrinkage(weighted_average: float, competitions_count: int) -> float:
        """Pull the weighted average toward the prior mean by K virtual competitions"""
        return (
            (weighted_average * competitions_count + BPRConstants.MU0 * BPRConstants.K)
            / (competitions_count + BPRConstants.K)
        )
    
    @staticmethod
    def apply_inactivity_decay(bpr: float, most_recent: datetime, now: datetime) -> float:
        """
        Decay a rating once the user has been inactive past the grace period
        
        Decay starts only when the inactive days are strictly greater than
        INACTIVE_AFTER_DAYS, and never pushes the rating below the prior mean.
        
        Args:
            bpr: Rating after shrinkage
            most_recent: End time of the user's latest competition
            now: Reference time
            
        Returns:
            Decayed rating
        """
        days_inactive = (as_utc(now) - as_utc(most_recent)) // timedelta(days=1)
        if days_inactive <= BPRConstants.INACTIVE_AFTER_DAYS:
            return bpr
        
        weeks_inactive = (days_inactive - BPRConstants.INACTIVE_AFTER_DAYS) // 7
        decayed = bpr * BPRConstants.INACTIVE_WEEKLY_FACTOR ** weeks_inactive
        logger.debug(f"Inactive for {days_inactive} days, applying {weeks_inactive} weeks of decay")
        return max(decayed, BPRConstants.MU0)
    
    @staticmethod
    def calculate_bpr(results: Iterable[CompetitionResult],
                      now: Optional[datetime] = None) -> BPRResult:
        """
        Calculate the BPR for a single user
        
        Args:
            results: The user's competition results, in any order
            now: Reference time for inactivity decay (defaults to current UTC time)
            
        Returns:
            BPRResult with the rating and its diagnostics
        """
        if now is None:
            now = datetime.now(timezone.utc)
        
        history = sort_by_recency(results)[:BPRConstants.MAX_HISTORY]
        if not history:
            return BPRResult.default()
        
        sum_weight = 0.0
        sum_weighted_score = 0.0
        for position, result in enumerate(history, start=1):
            score = BPRCalculator.placement_score(result.finish_rank, result.field_size)
            weight = BPRCalculator.size_weight(result.field_size) * BPRCalculator.recency_weight(position)
            sum_weight += weight
            sum_weighted_score += weight * score
        
        competitions_count = len(history)
        weighted_average = sum_weighted_score / sum_weight if sum_weight > 0 else BPRConstants.MU0
        
        bpr = BPRCalculator.apply_shrinkage(weighted_average, competitions_count)
        bpr = BPRCalculator.apply_inactivity_decay(bpr, history[0].ended_at, now)
        
        return BPRResult(
            bpr=round_half_up(bpr),
            competitions_count=competitions_count,
            is_provisional=competitions_count < BPRConstants.PROVISIONAL_THRESHOLD,
            weighted_average=round_half_up(weighted_average),
            total_weight=round_half_up(sum_weight)
        )
    
    @staticmethod
    def get_recent_form(results: Iterable[CompetitionResult],
                        count: int = DisplayConstants.RECENT_FORM_COUNT) -> List[str]:
        """
        Win/loss marks for the most recent competitions
        
        Args:
            results: Competition results, in any order
            count: Number of recent competitions to include
            
        Returns:
            'W' for first place and 'L' otherwise, oldest to newest
        """
        recent = sort_by_recency(results)[:count]
        marks = [
            DisplayConstants.WIN_MARK if result.finish_rank == 1 else DisplayConstants.LOSS_MARK
            for result in recent
        ]
        marks.reverse()
        return marks
    
    @staticmethod
    def get_debug_info(result: BPRResult) -> BPRDebugInfo:
        """Build tooltip text explaining a rating"""
        count = result.competitions_count
        plural = '' if count == 1 else 's'
        description = (
            f"BPR: {result.bpr} based on {count} competition{plural}. "
            f"Raw performance: {result.weighted_average}. "
        )
        if result.is_provisional:
            description += 'Provisional ranking - compete in more events for accuracy.'
        
        return BPRDebugInfo(
            score=result.bpr,
            competitions=count,
            status=DisplayConstants.PROVISIONAL_STATUS if result.is_provisional else DisplayConstants.ESTABLISHED_STATUS,
            raw_performance=result.weighted_average,
            description=description
        )
