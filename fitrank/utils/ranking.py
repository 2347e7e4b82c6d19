"""
Shared ranking utilities for friends leaderboards.

Every client must agree on the same ordering, so ranking is a total order:
BPR, then competitions played, then unshrunk performance, then user id.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

from fitrank.constants import BPRConstants
from fitrank.data_models.competition import BPRResult
from fitrank.data_models.ranking import RankingEntry, RankingResult

logger = logging.getLogger(__name__)

FriendsBPR = Union[Mapping[str, BPRResult], Iterable[Tuple[str, BPRResult]]]


def _field(user: Any, name: str, default: Any = None) -> Any:
    if isinstance(user, Mapping):
        return user.get(name, default)
    return getattr(user, name, default)


class RankingUtility:
    """Shared ranking logic for consistent ordering across callers."""
    
    @staticmethod
    def sort_key(user: Any) -> Tuple[float, int, float, str]:
        """Sort key for descending BPR with deterministic tie-breaks."""
        return (
            -_field(user, 'bpr'),
            -_field(user, 'competitions_count'),
            -_field(user, 'weighted_average'),
            str(_field(user, 'id')),
        )
    
    @staticmethod
    def rank_users(users: Iterable[Any]) -> List[RankingEntry]:
        """
        Rank users by BPR with deterministic tie-breaks.
        
        Order: higher bpr, then more competitions, then higher weighted
        average, then id ascending. Output does not depend on input order.
        
        Args:
            users: Mappings or objects exposing id, bpr, competitions_count
                and weighted_average (is_provisional is optional)
            
        Returns:
            New list of RankingEntry with 1-indexed ranks
        """
        ordered = sorted(users, key=RankingUtility.sort_key)
        entries = []
        for position, user in enumerate(ordered, start=1):
            competitions_count = _field(user, 'competitions_count')
            is_provisional = _field(user, 'is_provisional')
            if is_provisional is None:
                is_provisional = competitions_count < BPRConstants.PROVISIONAL_THRESHOLD
            entries.append(RankingEntry(
                id=str(_field(user, 'id')),
                bpr=_field(user, 'bpr'),
                competitions_count=competitions_count,
                is_provisional=is_provisional,
                weighted_average=_field(user, 'weighted_average'),
                rank=position
            ))
        return entries
    
    @staticmethod
    def calculate_percentile(rank: int, total: int) -> int:
        """Share of users ranked behind `rank`, 0-100. 0 when alone."""
        if total <= 1:
            return 0
        users_behind = total - rank
        # Divide before scaling, then round halves up
        return int(math.floor((users_behind / (total - 1)) * 100 + 0.5))
    
    @staticmethod
    def calculate_friends_rankings(user_id: str, user_bpr: BPRResult,
                                   friends_bpr: FriendsBPR) -> RankingResult:
        """
        Rank a user among their friends.
        
        Args:
            user_id: The requesting user's id
            user_bpr: The requesting user's rating
            friends_bpr: Friend id -> rating, as a mapping or (id, rating) pairs
            
        Returns:
            RankingResult with the user's rank, percentile and full ordering
        """
        friends: Dict[str, BPRResult] = dict(friends_bpr)
        friends = {str(friend_id): bpr for friend_id, bpr in friends.items()}
        if str(user_id) in friends:
            logger.debug(f"Ignoring self entry for user {user_id} in friends list")
            friends.pop(str(user_id))
        
        candidates = [RankingUtility._as_row(user_id, user_bpr)]
        candidates.extend(RankingUtility._as_row(friend_id, bpr) for friend_id, bpr in friends.items())
        
        rankings = RankingUtility.rank_users(candidates)
        friends_rank = next(entry.rank for entry in rankings if entry.id == str(user_id))
        total = len(rankings)
        
        return RankingResult(
            friends_rank=friends_rank,
            total_friends=total,
            friends_percentile=RankingUtility.calculate_percentile(friends_rank, total),
            bpr_score=user_bpr.bpr,
            is_provisional=user_bpr.is_provisional,
            competitions_count=user_bpr.competitions_count,
            rankings=tuple(rankings)
        )
    
    @staticmethod
    def _as_row(user_id: str, result: BPRResult) -> Dict[str, Any]:
        return {
            'id': str(user_id),
            'bpr': result.bpr,
            'competitions_count': result.competitions_count,
            'is_provisional': result.is_provisional,
            'weighted_average': result.weighted_average,
        }
