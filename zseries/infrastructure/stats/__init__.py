"""
Infrastructure: Time-Series Statistics
"""

from .fill import fill_missing, FILL_METHODS

__all__ = ["fill_missing", "FILL_METHODS"]
