import logging
import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Rating service configuration settings"""
    
    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///fitrank.db')
    
    # Runtime settings
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    LOG_LEVEL = os.getenv('LOG_LEVEL', '')  # overrides the DEBUG-derived level
    LOG_TO_FILE = os.getenv('LOG_TO_FILE', 'True').lower() == 'true'
    
    # Friends ranking cache
    RANKING_CACHE_TTL = int(os.getenv('RANKING_CACHE_TTL', 300))  # 5 minutes
    RANKING_CACHE_MAX_SIZE = int(os.getenv('RANKING_CACHE_MAX_SIZE', 500))
    
    # Store access
    FRIEND_FETCH_RETRIES = int(os.getenv('FRIEND_FETCH_RETRIES', 3))
    
    @classmethod
    def get_async_database_url(cls) -> str:
        """Get the database URL with an async driver for sqlite"""
        database_url = cls.DATABASE_URL
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')
        return database_url
    
    @classmethod
    def validate(cls):
        """Validate that configuration values are usable"""
        if cls.RANKING_CACHE_TTL <= 0:
            raise ValueError("RANKING_CACHE_TTL must be a positive number of seconds")
        if cls.RANKING_CACHE_MAX_SIZE <= 0:
            raise ValueError("RANKING_CACHE_MAX_SIZE must be positive")
        if cls.FRIEND_FETCH_RETRIES < 1:
            raise ValueError("FRIEND_FETCH_RETRIES must be at least 1")
        if cls.LOG_LEVEL and not isinstance(logging.getLevelName(cls.LOG_LEVEL.upper()), int):
            raise ValueError(f"Unknown LOG_LEVEL: {cls.LOG_LEVEL}")
