"""
Rating constants for the FitRank engine.

All magic numbers used by the Bayesian Placement Rating calculation live here.
They are fixed values, not runtime configuration.
"""

class BPRConstants:
    """Constants for the Bayesian Placement Rating (BPR) calculation."""
    
    # Recency decay applied per competition step (most recent = 1 step)
    DECAY = 0.90
    
    # Bayesian prior strength, in virtual competitions
    K = 5
    
    # Prior mean (neutral performance)
    MU0 = 0.50
    
    # Maximum competitions considered, most recent first
    MAX_HISTORY = 40
    
    # Inactivity decay
    INACTIVE_AFTER_DAYS = 60
    INACTIVE_WEEKLY_FACTOR = 0.99
    
    # Ratings built from fewer competitions are provisional
    PROVISIONAL_THRESHOLD = 3
    
    # Solo competitions (field size <= 1) score and weigh neutrally
    SOLO_PLACEMENT_SCORE = 0.5
    SOLO_SIZE_WEIGHT = 0.5

class TransformConstants:
    """Constants for normalizing raw competition records."""
    
    # Field names in precedence order
    USER_ID_FIELDS = ('userId', 'uid', 'id')
    POSITION_FIELDS = ('position', 'rank', 'place')
    ENDED_AT_FIELDS = ('completedAt', 'endDate', 'endedAt')
    POINTS_FIELDS = ('points', 'score')
    RANKINGS_FIELDS = ('finalRankings', 'rankings')
    TIMESTAMP_METHODS = ('to_datetime', 'toDate')
    COMPETITION_ID_FIELDS = ('id', 'competitionId')
    
    # Field size when neither rankings nor participants are present
    FALLBACK_FIELD_SIZE = 2
    
    UNKNOWN_COMPETITION_ID = 'unknown'

class DisplayConstants:
    """Constants for rating display helpers."""
    
    # Number of competitions shown in recent form
    RECENT_FORM_COUNT = 5
    
    WIN_MARK = 'W'
    LOSS_MARK = 'L'
    
    PROVISIONAL_STATUS = 'Provisional (needs 3+ competitions)'
    ESTABLISHED_STATUS = 'Established'
