"""Configuration for the Hough voting pipeline."""

import math
from dataclasses import dataclass
from typing import Optional


@dataclass
class VotingConfig:
    """
    Parameters of the preemptive RANSAC voting and the pose search.

    Attributes:
        ransac_iterations: Number of initial hypothesis draws per image.
        max_attempts: Maximum number of retries for a degenerate draw.
        min_area: Classes with fewer pixels than this are ignored.
        inlier_threshold: Maximum point-to-line distance (pixels) of an inlier vote.
        preemptive_batch: Pixel budget added to a hypothesis in every scoring round.
        max_inliers: Maximum number of correspondences kept for refinement.
        min_refinements: Refinement steps required before the last hypothesis of a class is final.
        pose_iterations: Objective evaluations allowed for the pose search.
        rot_range: Search range around the initial rotation (radians, per axis).
        trans_range_xy: Search range around the initial X/Y translation.
        trans_range_z: Search range around the initial Z translation.
        box_expansion: Relative expansion of the projected box on each side.
        jitter: Relative box shift used for the jittered output records.
        num_workers: Worker threads (None lets the executor decide).
        seed: Optional entropy for the random generators (None draws fresh entropy).
    """

    ransac_iterations: int = 256
    max_attempts: int = 10_000_000
    min_area: int = 400
    inlier_threshold: float = 0.5
    preemptive_batch: int = 1000
    max_inliers: int = 1000
    min_refinements: int = 8
    pose_iterations: int = 100
    rot_range: float = math.pi
    trans_range_xy: float = 0.1
    trans_range_z: float = 0.5
    box_expansion: float = 0.1
    jitter: float = 0.05
    num_workers: Optional[int] = None
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.preemptive_batch < 0:
            raise ValueError(f"Need preemptive_batch >= 0, got {self.preemptive_batch}")
        if self.ransac_iterations < 0:
            raise ValueError(f"Need ransac_iterations >= 0, got {self.ransac_iterations}")
        if self.max_attempts < 1:
            raise ValueError(f"Need max_attempts >= 1, got {self.max_attempts}")
        if self.min_refinements < 0:
            raise ValueError(f"Need min_refinements >= 0, got {self.min_refinements}")
        if self.max_inliers < 1:
            raise ValueError(f"Need max_inliers >= 1, got {self.max_inliers}")
        if self.inlier_threshold <= 0:
            raise ValueError(f"Need inlier_threshold > 0, got {self.inlier_threshold}")
        if self.pose_iterations < 1:
            raise ValueError(f"Need pose_iterations >= 1, got {self.pose_iterations}")
        if self.num_workers is not None and self.num_workers < 1:
            raise ValueError(f"Need num_workers >= 1, got {self.num_workers}")
