"""
FitRank - Bayesian Placement Rating for fitness competitions.

Rates users from their competition placements and ranks them among friends.
"""

__version__ = "1.0.0"
