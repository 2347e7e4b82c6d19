"""
Friends ranking service.

Loads completed competitions from the competition store, rates the user and
every friend concurrently, and ranks them once. Results are cached per user and
friend set with a TTL.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from fitrank.config import Config
from fitrank.data_models.competition import BPRResult, CompetitionResult
from fitrank.data_models.ranking import RankingResult
from fitrank.services.base import BaseService
from fitrank.utils.bpr import BPRCalculator
from fitrank.utils.exceptions import DatabaseError
from fitrank.utils.logger import setup_logger
from fitrank.utils.ranking import RankingUtility
from fitrank.utils.transform import CompetitionTransformer

logger = setup_logger(__name__)

CacheKey = Tuple[str, Tuple[str, ...]]


class FriendsRankingService(BaseService):
    """Service for rating a user against their friends, with caching."""

    def __init__(self, database, max_retries: int = None):
        super().__init__(database, max_retries)
        # TTL cache: (user_id, friend ids) -> (timestamp, ranking)
        self._cache: Dict[CacheKey, Tuple[float, RankingResult]] = {}
        self._cache_ttl = Config.RANKING_CACHE_TTL
        self._cache_max_size = Config.RANKING_CACHE_MAX_SIZE
        self._cache_lock = asyncio.Lock()

    async def load_competitions(self, user_id: str, now: datetime) -> List[CompetitionResult]:
        """Load and normalize a user's completed competitions."""
        try:
            records = await self.execute_with_retry(
                lambda: self.database.get_completed_competitions(user_id)
            )
        except SQLAlchemyError as e:
            raise DatabaseError(f"loading competitions for user {user_id}", str(e)) from e
        return CompetitionTransformer.transform_competition_data(records, user_id, now)

    async def get_user_bpr(self, user_id: str, now: Optional[datetime] = None) -> BPRResult:
        """Rate a single user from their stored history."""
        if now is None:
            now = datetime.now(timezone.utc)
        competitions = await self.load_competitions(user_id, now)
        result = BPRCalculator.calculate_bpr(competitions, now)
        logger.debug(f"User {user_id}: BPR {result.bpr} from {result.competitions_count} competitions")
        return result

    async def _get_friend_bpr(self, friend_id: str, now: datetime) -> BPRResult:
        """Rate a friend, falling back to the neutral rating if their history can't be loaded."""
        try:
            return await self.get_user_bpr(friend_id, now)
        except Exception as e:
            logger.error(f"Failed to rate friend {friend_id}, using default BPR: {e}", exc_info=True)
            return BPRResult.default()

    async def get_friend_ids(self, user_id: str) -> List[str]:
        """Get a user's friends from the store."""
        try:
            return await self.execute_with_retry(lambda: self.database.get_friend_ids(user_id))
        except SQLAlchemyError as e:
            raise DatabaseError(f"loading friends for user {user_id}", str(e)) from e

    async def get_friends_ranking(self, user_id: str,
                                  friend_ids: Optional[Iterable[str]] = None,
                                  now: Optional[datetime] = None) -> RankingResult:
        """
        Rank a user among their friends.

        The cache is used only when `now` is not given; an explicit reference
        time always recomputes.

        Args:
            user_id: The requesting user's id
            friend_ids: Friends to rank against (loaded from the store when None)
            now: Reference time for inactivity decay

        Returns:
            RankingResult for the user

        Raises:
            DatabaseError: If the user's own history or friends list can't be loaded
        """
        user_id = str(user_id)
        if friend_ids is None:
            friend_ids = await self.get_friend_ids(user_id)
        friends = tuple(sorted({str(friend_id) for friend_id in friend_ids} - {user_id}))

        use_cache = now is None
        cache_key = (user_id, friends)
        if use_cache:
            cached = await self._get_cached(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit for friends ranking of user {user_id}")
                return cached
            now = datetime.now(timezone.utc)

        # One independent rating per user, then a single ranking pass
        user_result, *friend_results = await asyncio.gather(
            self.get_user_bpr(user_id, now),
            *(self._get_friend_bpr(friend_id, now) for friend_id in friends)
        )
        ranking = RankingUtility.calculate_friends_rankings(
            user_id, user_result, zip(friends, friend_results)
        )
        logger.info(
            f"User {user_id} ranked {ranking.friends_rank}/{ranking.total_friends} "
            f"(percentile {ranking.friends_percentile})"
        )

        if use_cache:
            await self._store_cached(cache_key, ranking)
        return ranking

    async def _get_cached(self, key: CacheKey) -> Optional[RankingResult]:
        async with self._cache_lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            timestamp, ranking = entry
            if time.monotonic() - timestamp >= self._cache_ttl:
                self._cache.pop(key, None)
                return None
            return ranking

    async def _store_cached(self, key: CacheKey, ranking: RankingResult):
        async with self._cache_lock:
            self._cache[key] = (time.monotonic(), ranking)
            if len(self._cache) > self._cache_max_size:
                self._cleanup_cache()

    def _cleanup_cache(self):
        """Drop expired entries, then the oldest ones beyond the size limit."""
        now = time.monotonic()
        live = {
            key: entry for key, entry in self._cache.items()
            if now - entry[0] < self._cache_ttl
        }
        newest = sorted(live.items(), key=lambda item: item[1][0], reverse=True)
        self._cache = dict(newest[:self._cache_max_size])
        logger.debug(f"Cleaned friends ranking cache, kept {len(self._cache)} entries")

    async def invalidate_user(self, user_id: str):
        """Drop cached rankings that include this user, e.g. after a competition completes."""
        user_id = str(user_id)
        async with self._cache_lock:
            stale = [key for key in self._cache if key[0] == user_id or user_id in key[1]]
            for key in stale:
                self._cache.pop(key, None)
        logger.debug(f"Invalidated {len(stale)} cached rankings for user {user_id}")

    async def invalidate_all(self):
        """Clear the entire cache."""
        async with self._cache_lock:
            self._cache.clear()
        logger.info("Cleared friends ranking cache")
