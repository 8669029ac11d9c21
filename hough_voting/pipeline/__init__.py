"""
Hough Voting Pipeline

This module provides the preemptive RANSAC voting that turns a label map and
per-pixel center votes into object boxes and 6DoF poses.
"""

from .extents import Extent3DCatalog
from .geometry import (
    create_3d_bbox,
    least_squares_center,
    point_to_line,
    project_bbox,
    rect_iou,
    rotation_to_quaternion,
    triangulate_center,
)
from .hough_voting import estimate_center, hough_voting, hough_voting_grad, validate_inputs
from .hypothesis_pool import HypothesisPool, run_preemptive_ransac
from .output import OutputAssembler
from .pixel_index import ClassPixelIndex, VoteMap
from .pose_optimizer import PoseEstimate, PoseOptimizer, nelder_mead
from .refiner import HypothesisRefiner
from .sampler import HypothesisSampler
from .scorer import InlierScorer

__all__ = [
    "hough_voting",
    "hough_voting_grad",
    "estimate_center",
    "validate_inputs",
    "ClassPixelIndex",
    "VoteMap",
    "Extent3DCatalog",
    "HypothesisSampler",
    "HypothesisPool",
    "run_preemptive_ransac",
    "InlierScorer",
    "HypothesisRefiner",
    "PoseOptimizer",
    "PoseEstimate",
    "nelder_mead",
    "OutputAssembler",
    "point_to_line",
    "least_squares_center",
    "triangulate_center",
    "create_3d_bbox",
    "project_bbox",
    "rect_iou",
    "rotation_to_quaternion",
]
