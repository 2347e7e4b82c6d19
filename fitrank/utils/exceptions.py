"""
Custom exceptions for the rating system with user-friendly error messages.
"""

class RatingException(Exception):
    """Base exception for rating-related errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class InvalidRecordError(RatingException):
    """Raised in strict mode when a competition record cannot be used."""
    def __init__(self, competition_id: str, reason: str):
        self.competition_id = competition_id
        self.reason = reason
        super().__init__(
            f"Invalid competition record '{competition_id}': {reason}",
            "❌ One of your competitions has incomplete results."
        )

class DatabaseError(RatingException):
    """Raised when competition store operations fail."""
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Database error during {operation}: {details}",
            "❌ Couldn't load competition history. Please try again later."
        )
