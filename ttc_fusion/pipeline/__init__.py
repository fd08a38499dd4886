"""
Pipeline module - Frame-pair and sequence processing.
"""

from .frame_pair_processor import FramePairProcessor, FramePairResult, RegionTTC
from .sequence_processor import SequenceProcessor

__all__ = [
    'FramePairProcessor',
    'FramePairResult',
    'RegionTTC',
    'SequenceProcessor',
]
