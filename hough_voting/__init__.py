"""
Hough Voting Pose Recovery

This package recovers per-instance 2D boxes and 6DoF poses from a
class-segmentation map and per-pixel center votes using preemptive RANSAC
followed by a derivative-free pose search.
"""

from .config import VotingConfig
from .pipeline import estimate_center, hough_voting, hough_voting_grad

__all__ = [
    "VotingConfig",
    "estimate_center",
    "hough_voting",
    "hough_voting_grad",
]
