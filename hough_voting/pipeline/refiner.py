"""Least-squares refinement of hypothesis centers."""

import numpy as np

from ..data.hypothesis import Hypothesis
from .geometry import least_squares_center

MIN_REFINE_INLIERS = 4


class HypothesisRefiner:
    """Re-estimates a center from its inlier vote lines."""

    def __init__(self, max_inliers: int = 1000) -> None:
        """
        Args:
            max_inliers: Maximum number of correspondences used for one estimate
        """
        self.max_inliers = max_inliers

    def filter_inliers(self, hyp: Hypothesis, rng: np.random.Generator) -> None:
        """
        Thin out the correspondences of a hypothesis to at most max_inliers.

        Correspondences are drawn with replacement, so a kept set may contain duplicates.
        """
        if len(hyp.inlier_votes) < self.max_inliers:
            return
        keep = rng.integers(len(hyp.inlier_votes), size=self.max_inliers)
        hyp.inlier_votes = hyp.inlier_votes[keep]
        hyp.inlier_pixels = hyp.inlier_pixels[keep]

    def refine(self, hyp: Hypothesis, rng: np.random.Generator) -> bool:
        """
        Move the center to the least-squares intersection of its inlier lines.

        Hypotheses with fewer than four correspondences, or whose lines do not fix
        a unique point, keep their center.

        Args:
            hyp: Hypothesis to refine
            rng: Generator owned by this task

        Returns:
            True if the center was updated
        """
        if len(hyp.inlier_votes) < MIN_REFINE_INLIERS:
            return False
        self.filter_inliers(hyp, rng)

        center = least_squares_center(hyp.inlier_votes, hyp.inlier_pixels)
        if center is None:
            return False
        hyp.center = center
        return True
