"""
Base service class for FitRank services.

Provides access to the competition store and retry logic for store reads.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from fitrank.config import Config

logger = logging.getLogger(__name__)

T = TypeVar('T')

class BaseService:
    """Base class for services that read from the competition store."""
    
    def __init__(self, database, max_retries: int = None):
        """
        Initialize base service with the competition store.
        
        Args:
            database: Initialized Database instance
            max_retries: Attempts per store read (defaults to Config.FRIEND_FETCH_RETRIES)
        """
        self.database = database
        self.max_retries = max_retries or Config.FRIEND_FETCH_RETRIES
    
    async def execute_with_retry(self, func: Callable[[], Awaitable[T]]) -> T:
        """Execute a store read with automatic retry and exponential backoff."""
        for attempt in range(self.max_retries):
            try:
                return await func()
            except Exception as e:
                if attempt == self.max_retries - 1:
                    raise
                name = getattr(func, '__name__', repr(func))
                logger.warning(f"Retry attempt {attempt + 1} for {name}: {e}")
                await asyncio.sleep(0.1 * (2 ** attempt))
