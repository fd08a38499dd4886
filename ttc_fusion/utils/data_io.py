"""
Data I/O - Funzioni per salvare e caricare frame e risultati TTC.
"""

import json
import numpy as np
from pathlib import Path
from typing import List

from ttc_fusion.fusion.data_structures import (
    Correspondence,
    Frame,
    Keypoint,
    Rect,
    Region,
    range_points_from_array,
    range_points_to_array,
)
from ttc_fusion.pipeline.frame_pair_processor import FramePairResult


def save_frame(frame: Frame, output_path: str):
    """
    Save a frame's sensor data (regions without their assigned points/matches).

    Layout of the .npz archive:
        range_points:     (N, 4)  x, y, z, r
        keypoints:        (K, 3)  x, y, size
        regions:          (B, 7)  id, x, y, width, height, class_id, confidence
        matches:          (M, 3)  prev_idx, curr_idx, distance
        region_keypoints: (P, 2)  row in regions, index into keypoints
        frame_idx:        scalar

    Args:
        frame: Frame to save
        output_path: Output file path (.npz)
    """
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    keypoints = np.array([[kp.x, kp.y, kp.size] for kp in frame.keypoints],
                         dtype=np.float64).reshape(-1, 3)
    regions = np.array([[r.region_id, r.roi.x, r.roi.y, r.roi.width, r.roi.height,
                         r.class_id, r.confidence] for r in frame.regions],
                       dtype=np.float64).reshape(-1, 7)
    matches = np.array([[m.prev_idx, m.curr_idx, m.distance] for m in frame.matches],
                       dtype=np.float64).reshape(-1, 3)
    region_keypoints = np.array([[row, idx] for row, r in enumerate(frame.regions)
                                 for idx in r.keypoint_indices],
                                dtype=np.int64).reshape(-1, 2)

    np.savez_compressed(
        output_file,
        range_points=range_points_to_array(frame.range_points),
        keypoints=keypoints,
        regions=regions,
        matches=matches,
        region_keypoints=region_keypoints,
        frame_idx=np.array(frame.frame_idx),
    )


def load_frame(input_path: str) -> Frame:
    """
    Load a frame saved with ``save_frame``.

    Args:
        input_path: Path of the .npz file

    Returns:
        Frame, not yet clustered

    Raises:
        FileNotFoundError: If the file does not exist
    """
    input_file = Path(input_path)
    if not input_file.exists():
        raise FileNotFoundError(f"Frame file not found: {input_path}")

    with np.load(input_file) as data:
        files = data.files
        range_points = data['range_points'] if 'range_points' in files else np.zeros((0, 4))
        keypoints = data['keypoints'] if 'keypoints' in files else np.zeros((0, 3))
        regions = data['regions'] if 'regions' in files else np.zeros((0, 7))
        matches = data['matches'] if 'matches' in files else np.zeros((0, 3))
        frame_idx = int(data['frame_idx']) if 'frame_idx' in files else 0
        region_keypoints = (data['region_keypoints'] if 'region_keypoints' in files
                            else np.zeros((0, 2), dtype=np.int64))

    frame_regions = [Region(region_id=int(rid), roi=Rect(float(x), float(y), float(w), float(h)),
                            class_id=int(cls), confidence=float(conf))
                     for rid, x, y, w, h, cls, conf in regions]
    for row, idx in region_keypoints:
        frame_regions[int(row)].keypoint_indices.append(int(idx))

    return Frame(
        keypoints=[Keypoint(float(x), float(y), float(s)) for x, y, s in keypoints],
        regions=frame_regions,
        range_points=range_points_from_array(range_points),
        matches=[Correspondence(int(q), int(t), float(d)) for q, t, d in matches],
        frame_idx=frame_idx,
    )


def list_frame_files(input_dir: str, pattern: str = "frame_*.npz") -> List[Path]:
    """
    Frame files of a sequence directory, sorted by name.

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    input_path = Path(input_dir)
    if not input_path.is_dir():
        raise FileNotFoundError(f"Directory not found: {input_dir}")
    return sorted(input_path.glob(pattern))


def save_ttc_results(results: List[FramePairResult], output_path: str):
    """
    Save the TTC estimates of a sequence as JSON.

    Args:
        results: One FramePairResult per processed frame pair
        output_path: Output file path (.json)
    """
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, 'w') as f:
        json.dump([r.to_dict() for r in results], f, indent=2)

    print(f"TTC results saved to: {output_path}")


def load_ttc_results(input_path: str) -> List[FramePairResult]:
    """
    Load TTC estimates saved with ``save_ttc_results``.

    Args:
        input_path: Path of the .json file

    Returns:
        List of FramePairResult
    """
    with open(input_path, 'r') as f:
        data = json.load(f)
    return [FramePairResult.from_dict(d) for d in data]
