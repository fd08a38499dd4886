"""
TTC module - Range-based and camera-based time-to-collision estimators.
"""

from .ttc_result import TTCResult, TTCStatus
from .range_ttc import RangeTTCEstimator
from .visual_ttc import VisualTTCEstimator

__all__ = [
    'TTCResult',
    'TTCStatus',
    'RangeTTCEstimator',
    'VisualTTCEstimator',
]
