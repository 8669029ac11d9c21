"""Data class for center hypotheses of the preemptive RANSAC."""

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np


def _empty_points() -> np.ndarray:
    return np.zeros((0, 2), dtype=np.float64)


@dataclass
class Hypothesis:
    """
    Candidate 2D object center for one class together with its supporting evidence.

    Attributes:
        class_id: Class the hypothesis belongs to.
        center: Current center estimate (x, y) in pixels.
        order: Insertion order inside the pool, used as the last pruning tie-break.
        inlier_votes: Votes of the inlier correspondences, shape (K, 2).
        inlier_pixels: Pixel positions of the inlier correspondences, shape (K, 2).
        inliers: Number of inliers found in the last scoring round.
        eff_pixels: Number of pixels examined in the last scoring round.
        max_pixels: Cumulative pixel budget granted so far.
        ref_steps: Number of refinement steps applied.
        width: Box width derived from the inlier spread.
        height: Box height derived from the inlier spread.
    """

    class_id: int
    center: np.ndarray
    order: int = 0
    inlier_votes: np.ndarray = field(default_factory=_empty_points)
    inlier_pixels: np.ndarray = field(default_factory=_empty_points)
    inliers: int = 0
    eff_pixels: int = 0
    max_pixels: int = 0
    ref_steps: int = 0
    width: float = 0.0
    height: float = 0.0

    def __post_init__(self) -> None:
        self.center = np.asarray(self.center, dtype=np.float64).reshape(2)

    def sort_key(self) -> Tuple[int, int, int]:
        """Total pruning order: more inliers first, then less evidence, then older."""
        return (-self.inliers, self.max_pixels, self.order)

    def get_inlier_rate(self) -> float:
        """Fraction of the examined pixels that were inliers."""
        if self.eff_pixels == 0:
            return 0.0
        return self.inliers / self.eff_pixels

    def clear_inliers(self) -> None:
        self.inlier_votes = _empty_points()
        self.inlier_pixels = _empty_points()
        self.inliers = 0

    def compute_width_height(self) -> Tuple[float, float]:
        """
        Derive the box size from the spread of the inlier pixels around the center.

        The box is symmetric around the center and just covers the farthest inlier
        along each axis. Without inliers the size stays zero.

        Returns:
            Tuple of (width, height)
        """
        if len(self.inlier_pixels) == 0:
            self.width, self.height = 0.0, 0.0
        else:
            spread = np.abs(self.inlier_pixels - self.center).max(axis=0)
            self.width = float(2.0 * spread[0])
            self.height = float(2.0 * spread[1])
        return self.width, self.height
