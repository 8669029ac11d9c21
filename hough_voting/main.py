"""
Command-line interface for the Hough voting pipeline.

Loads the operator inputs from an .npz archive, runs Hough voting on the
batch, prints the detected instances and optionally saves the outputs.
"""

import argparse
import sys
from typing import Any, Dict, Optional

import numpy as np

from .config import VotingConfig
from .pipeline import hough_voting
from .utils.performance import PerformanceMonitor

INPUT_KEYS = ("label", "vertex", "extents", "meta_data")


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments for the pipeline"""
    defaults = VotingConfig()
    parser = argparse.ArgumentParser(description="Hough Voting Pose Recovery")
    parser.add_argument(
        "input",
        type=str,
        help="Path to .npz archive with label, vertex, extents, meta_data and optional poses_gt",
    )
    parser.add_argument(
        "--output", type=str, default=None, help="Path to save boxes, poses, target and weight"
    )
    parser.add_argument(
        "--ransac-iterations",
        type=int,
        default=defaults.ransac_iterations,
        help="Number of initial hypothesis draws per image",
    )
    parser.add_argument(
        "--preemptive-batch",
        type=int,
        default=defaults.preemptive_batch,
        help="Pixels added to every hypothesis budget per scoring round",
    )
    parser.add_argument(
        "--min-area",
        type=int,
        default=defaults.min_area,
        help="Minimum number of pixels of a class",
    )
    parser.add_argument(
        "--inlier-threshold",
        type=float,
        default=defaults.inlier_threshold,
        help="Maximum point-to-line distance of an inlier vote in pixels",
    )
    parser.add_argument(
        "--max-inliers",
        type=int,
        default=defaults.max_inliers,
        help="Maximum number of correspondences used for refinement",
    )
    parser.add_argument(
        "--min-refinements",
        type=int,
        default=defaults.min_refinements,
        help="Refinement steps required for the final hypothesis of a class",
    )
    parser.add_argument(
        "--pose-iterations",
        type=int,
        default=defaults.pose_iterations,
        help="Objective evaluations of the pose search",
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="Number of worker threads (default: auto)"
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible sampling")
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Print detected instances and stage timings",
    )
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> VotingConfig:
    return VotingConfig(
        ransac_iterations=args.ransac_iterations,
        preemptive_batch=args.preemptive_batch,
        min_area=args.min_area,
        inlier_threshold=args.inlier_threshold,
        max_inliers=args.max_inliers,
        min_refinements=args.min_refinements,
        pose_iterations=args.pose_iterations,
        num_workers=args.workers,
        seed=args.seed,
    )


def load_inputs(path: str) -> Dict[str, np.ndarray]:
    """
    Load the operator inputs from an .npz archive.

    Args:
        path: Path to the archive

    Returns:
        Dictionary with label, vertex, extents, meta_data and poses_gt
    """
    with np.load(path) as archive:
        missing = [key for key in INPUT_KEYS if key not in archive]
        if missing:
            raise ValueError(f"{path} is missing arrays: {', '.join(missing)}")
        inputs = {key: archive[key] for key in INPUT_KEYS}
        inputs["poses_gt"] = (
            archive["poses_gt"] if "poses_gt" in archive else np.zeros((0, 13), np.float32)
        )
    return inputs


def estimate_poses(
    inputs: Dict[str, np.ndarray],
    config: Optional[VotingConfig] = None,
    verbose: bool = False,
) -> Dict[str, Any]:
    """
    Programmatic API for Hough voting on a dictionary of inputs.

    Args:
        inputs: Dictionary with label, vertex, extents, meta_data and optional poses_gt
        config: Voting parameters
        verbose: Whether to print detailed output

    Returns:
        Dictionary containing boxes, poses, target, weight and stage times in ms
    """
    perf_monitor = PerformanceMonitor()
    boxes, poses, target, weight = hough_voting(
        inputs["label"],
        inputs["vertex"],
        inputs["extents"],
        inputs["meta_data"],
        inputs.get("poses_gt"),
        config=config,
        perf_monitor=perf_monitor,
    )

    if verbose:
        # canonical records are followed by their four jittered copies
        for box, pose in zip(boxes[::5], poses[::5]):
            batch, cls, x1, y1, x2, y2 = box
            print(
                f"Image {int(batch)} class {int(cls)}: "
                f"Box [{x1:.1f}, {y1:.1f}, {x2:.1f}, {y2:.1f}] "
                f"Quaternion [{pose[0]:.3f}, {pose[1]:.3f}, {pose[2]:.3f}, {pose[3]:.3f}] "
                f"Translation [{pose[4]:.3f}, {pose[5]:.3f}, {pose[6]:.3f}]"
            )
        for stage, ms in perf_monitor.get_all_times().items():
            print(f"{stage}: {ms:.1f} ms")

    return {
        "boxes": boxes,
        "poses": poses,
        "target": target,
        "weight": weight,
        "time_info": perf_monitor.get_all_times(),
    }


def main(argv=None) -> int:
    """
    Main function for the Hough voting command line tool.

    Returns:
        Process exit code
    """
    args = parse_args(argv)

    try:
        config = config_from_args(args)
        inputs = load_inputs(args.input)
        results = estimate_poses(inputs, config, verbose=args.verbose)
    except (ValueError, OSError) as e:
        print(f"Error during processing: {str(e)}")
        return 1

    print(f"Detected {len(results['boxes']) // 5} objects ({len(results['boxes'])} records)")

    if args.output:
        np.savez(
            args.output,
            boxes=results["boxes"],
            poses=results["poses"],
            target=results["target"],
            weight=results["weight"],
        )
        if args.verbose:
            print(f"Saved outputs to {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
