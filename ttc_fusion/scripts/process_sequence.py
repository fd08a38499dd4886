#!/usr/bin/env python3
"""
Processes a recorded sequence of frames and estimates the TTC of every
tracked region.

Pipeline:
1. Load configurations and calibration
2. Load the frame files (frame_*.npz) in name order
3. Cluster range points, match regions and compute both TTCs per frame pair
4. Save the estimates as JSON

Usage:
    python -m ttc_fusion.scripts.process_sequence --input data/sequences/seq1 \
                                                  --output data/results/seq1_ttc.json
"""

import argparse
import sys
from pathlib import Path

# Aggiungi la directory root al path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from ttc_fusion.calibration.load_calibration import load_calibration_from_config
from ttc_fusion.pipeline.sequence_processor import SequenceProcessor
from ttc_fusion.ttc.ttc_result import TTCResult
from ttc_fusion.utils.config_loader import load_all_configs
from ttc_fusion.utils.data_io import list_frame_files, load_frame, save_ttc_results


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Estimate range and camera TTC over a frame sequence',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--input',
        type=str,
        required=True,
        help='Directory containing frame_*.npz files'
    )

    parser.add_argument(
        '--output',
        type=str,
        default=None,
        help='Output JSON path (default: data/results/<sequence>_ttc.json)'
    )

    parser.add_argument(
        '--config-dir',
        type=str,
        default='config',
        help='Directory containing the configuration files'
    )

    parser.add_argument(
        '--max-frames',
        type=int,
        default=None,
        help='Maximum number of frames to process (for debugging)'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Print per-stage diagnostics'
    )

    return parser.parse_args(argv)


def _format_ttc(result: TTCResult) -> str:
    if result.is_valid:
        return f"{result.value:7.2f} s"
    return result.status.value.lower()


def process_sequence(args):
    """
    Process the whole sequence.

    Args:
        args: Command line arguments

    Returns:
        0 on success, 1 on error
    """
    # ========== SETUP ==========
    print("=" * 60)
    print("TTC FUSION - SEQUENCE PROCESSING")
    print("=" * 60)

    print("[1/3] Loading configuration...")
    configs = load_all_configs(args.config_dir)
    fusion_cfg = configs['fusion_params']
    if args.verbose:
        fusion_cfg['verbose'] = True
    calibration = load_calibration_from_config(configs['calibration'])
    print(f"  Frame rate: {calibration.frame_rate} fps")

    frame_files = list_frame_files(args.input)
    if args.max_frames is not None:
        frame_files = frame_files[:args.max_frames]
    if len(frame_files) < 2:
        print(f"  Need at least 2 frames, found {len(frame_files)} in {args.input}")
        return 1
    print(f"  Frames: {len(frame_files)}")

    # ========== PROCESSING ==========
    print("[2/3] Processing frame pairs...")
    processor = SequenceProcessor(fusion_cfg, calibration)
    frames = (load_frame(str(path)) for path in frame_files)
    results = processor.process_all(frames, show_progress=not args.verbose)

    for result in results:
        for region in result.regions:
            print(f"  frame {result.frame_idx:4d}  region {region.prev_id}->{region.curr_id}  "
                  f"range TTC: {_format_ttc(region.range_ttc)}  "
                  f"camera TTC: {_format_ttc(region.visual_ttc)}")

    # ========== SAVE ==========
    print("[3/3] Saving results...")
    output = args.output or f"data/results/{Path(args.input).name}_ttc.json"
    save_ttc_results(results, output)

    # ========== SUMMARY ==========
    n_regions = sum(len(r.regions) for r in results)
    n_range = sum(1 for r in results for reg in r.regions if reg.range_ttc.is_valid)
    n_visual = sum(1 for r in results for reg in r.regions if reg.visual_ttc.is_valid)

    print("\n" + "=" * 60)
    print("PROCESSING COMPLETE")
    print("=" * 60)
    print(f"Frame pairs processed: {len(results)}")
    print(f"Region estimates: {n_regions} (range valid: {n_range}, camera valid: {n_visual})")
    print(f"Output: {output}")
    print("=" * 60)

    return 0


def main(argv=None):
    """Main function."""
    args = parse_args(argv)

    try:
        return process_sequence(args)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 1
    except Exception as e:
        print(f"\n\nERROR: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
