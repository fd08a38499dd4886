"""
TTC Fusion Package
Time-to-collision estimation from range-sensor points and camera keypoints.
"""

__version__ = "1.0.0"
__author__ = "TTC Fusion Team"

# Import principali per facilitare l'uso
from ttc_fusion.utils.config_loader import load_config
from ttc_fusion.calibration.load_calibration import load_calibration_from_config
from ttc_fusion.pipeline.frame_pair_processor import FramePairProcessor

__all__ = [
    'load_config',
    'load_calibration_from_config',
    'FramePairProcessor',
]
