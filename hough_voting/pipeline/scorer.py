"""Inlier counting on a growing pixel subsample."""

import numpy as np

from ..data.hypothesis import Hypothesis
from .geometry import point_to_line
from .pixel_index import ClassPixelIndex, VoteMap


class InlierScorer:
    """
    Counts the votes of a class that agree with a hypothesis center.

    Every call grants the hypothesis another pixel batch, so later rounds look at
    larger samples of the same pixel list. The sample is drawn by skipping through
    the list with geometrically distributed gaps, which visits the expected number
    of pixels without touching the rest of the list.
    """

    def __init__(
        self,
        pixel_index: ClassPixelIndex,
        vote_map: VoteMap,
        inlier_threshold: float = 0.5,
        pixel_batch: int = 1000,
    ) -> None:
        self.pixel_index = pixel_index
        self.vote_map = vote_map
        self.inlier_threshold = inlier_threshold
        self.pixel_batch = pixel_batch

    @staticmethod
    def sample_positions(size: int, rate: float, rng: np.random.Generator) -> np.ndarray:
        """
        Positions visited when walking a list of the given size with acceptance rate.

        The walk starts at the first element and advances by max(1, k) with
        k ~ NegativeBinomial(1, rate).

        Args:
            size: Length of the list
            rate: Acceptance probability in (0, 1]
            rng: Random generator

        Returns:
            Increasing positions (K,)
        """
        if size <= 0:
            return np.zeros(0, dtype=np.intp)
        if rate >= 1.0:
            return np.arange(size, dtype=np.intp)

        chunk = max(16, int(size * rate * 1.25) + 1)
        visited = []
        start = 0
        while start < size:
            steps = np.maximum(1, rng.negative_binomial(1, rate, size=chunk))
            stops = start + np.concatenate(([0], np.cumsum(steps)))
            positions = stops[:-1]
            visited.append(positions[positions < size])
            start = int(stops[-1])
        return np.concatenate(visited).astype(np.intp)

    def score(self, hyp: Hypothesis, rng: np.random.Generator) -> int:
        """
        Recount the inliers of a hypothesis on an enlarged sample.

        Args:
            hyp: Hypothesis to score; only this object is modified
            rng: Generator owned by this task

        Returns:
            Number of inliers
        """
        hyp.clear_inliers()
        hyp.eff_pixels = 0
        hyp.max_pixels += self.pixel_batch

        pixels = self.pixel_index.pixels(hyp.class_id)
        if len(pixels) == 0:
            return 0

        rate = max(hyp.max_pixels, 1) / float(len(pixels))
        indices = pixels[self.sample_positions(len(pixels), rate, rng)]
        hyp.eff_pixels = len(indices)

        points = self.vote_map.pixel_coordinates(indices)
        votes = self.vote_map.votes(hyp.class_id, indices)
        inlier = point_to_line(hyp.center, votes, points) < self.inlier_threshold

        hyp.inlier_votes = votes[inlier]
        hyp.inlier_pixels = points[inlier]
        hyp.inliers = int(np.count_nonzero(inlier))
        return hyp.inliers
