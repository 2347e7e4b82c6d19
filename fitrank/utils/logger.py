import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from fitrank.config import Config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_log_level() -> int:
    """Level from LOG_LEVEL, else DEBUG or INFO depending on the debug flag"""
    if Config.LOG_LEVEL:
        level = logging.getLevelName(Config.LOG_LEVEL.upper())
        if isinstance(level, int):
            return level
    return logging.DEBUG if Config.DEBUG else logging.INFO


def get_log_file(log_dir: Optional[str] = None) -> Path:
    """Today's rating service log file"""
    return Path(log_dir or Config.LOG_DIR) / f'fitrank_{datetime.now().strftime("%Y%m%d")}.log'


def setup_logger(name: str) -> logging.Logger:
    """Setup a store/service logger with console and daily file output"""
    
    logger = logging.getLogger(name)
    
    if logger.handlers:
        return logger
    
    log_level = get_log_level()
    logger.setLevel(log_level)
    
    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    
    # File log always keeps DEBUG records
    if Config.LOG_TO_FILE:
        log_file = get_log_file()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    
    return logger
