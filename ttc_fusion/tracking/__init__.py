"""
Tracking module - Region association across frames and correspondence filtering.
"""

from .region_matcher import RegionMatcher
from .correspondence_filter import CorrespondenceFilter

__all__ = [
    'RegionMatcher',
    'CorrespondenceFilter',
]
