"""
Utility functions per I/O, configurazione e helpers vari.
"""

from .config_loader import load_config, load_all_configs, get_nested_value
from .data_io import save_frame, load_frame, list_frame_files, save_ttc_results, load_ttc_results

__all__ = [
    'load_config',
    'load_all_configs',
    'get_nested_value',
    'save_frame',
    'load_frame',
    'list_frame_files',
    'save_ttc_results',
    'load_ttc_results',
]
