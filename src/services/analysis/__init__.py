"""
Analysis module - NVC communication rating.
"""

from .rater import CommunicationRater

__all__ = ["CommunicationRater"]
