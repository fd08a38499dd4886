"""
sequence_processor.py

Feeds a stream of frames through the FramePairProcessor.

Only the two most recent frames are kept (ring buffer of size 2): every new
frame is paired with its predecessor, using the correspondences stored on the
new frame. No state other than the previous frame survives a cycle.
"""

from collections import deque
from typing import Dict, Iterable, List, Optional

from tqdm import tqdm

from ttc_fusion.calibration.load_calibration import ProjectionCalibration
from ttc_fusion.fusion.data_structures import Frame, FramePair
from ttc_fusion.pipeline.frame_pair_processor import FramePairProcessor, FramePairResult


class SequenceProcessor:
    """Pairs consecutive frames and collects the per-pair results."""

    BUFFER_SIZE = 2

    def __init__(self, config: Dict, calibration: ProjectionCalibration):
        self.processor = FramePairProcessor(config, calibration)
        self.buffer = deque(maxlen=self.BUFFER_SIZE)

    def push(self, frame: Frame) -> Optional[FramePairResult]:
        """
        Add a frame to the buffer and process it against the previous one.

        Args:
            frame: Next frame of the sequence.

        Returns:
            FramePairResult, or None for the first frame of the sequence.
        """
        self.processor.prepare_frame(frame)
        self.buffer.append(frame)

        if len(self.buffer) < self.BUFFER_SIZE:
            return None

        prev, curr = self.buffer
        return self.processor.process(FramePair.from_frames(prev, curr))

    def process_all(self, frames: Iterable[Frame], show_progress: bool = True) -> List[FramePairResult]:
        """
        Process a whole sequence.

        Args:
            frames:        Frames in acquisition order.
            show_progress: Display a tqdm progress bar.

        Returns:
            One FramePairResult per consecutive pair.
        """
        results = []
        for frame in tqdm(frames, desc="Frames", disable=not show_progress):
            result = self.push(frame)
            if result is not None:
                results.append(result)
        return results

    def reset(self) -> None:
        """Discard the buffered frames (e.g. before a new sequence)."""
        self.buffer.clear()
