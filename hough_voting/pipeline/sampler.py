"""
Initial hypothesis sampling for the preemptive RANSAC.

Every draw picks a class, two of its pixels, and intersects their vote lines
to obtain a first center estimate. Attempts are made in vectorised batches and
the first valid pair in attempt order wins.
"""

from concurrent.futures import Executor
from typing import List, Optional, Sequence

import numpy as np

from ..data.hypothesis import Hypothesis
from .geometry import has_crossing_lines, triangulate_centers
from .hypothesis_pool import HypothesisPool
from .pixel_index import ClassPixelIndex, VoteMap

ATTEMPT_BATCH = 1024


class HypothesisSampler:
    """Draws two-point center hypotheses and inserts them into a pool."""

    def __init__(
        self, pixel_index: ClassPixelIndex, vote_map: VoteMap, max_attempts: int = 10_000_000
    ) -> None:
        """
        Args:
            pixel_index: Pixel lists of the classes that passed the area filter
            vote_map: Votes of the image
            max_attempts: Maximum number of tries per draw before it is given up
        """
        self.pixel_index = pixel_index
        self.vote_map = vote_map
        self.max_attempts = max_attempts

        # classes whose pixels contain no crossing pair of vote lines can never
        # produce a hypothesis and are left out of the draws
        self.class_ids: List[int] = []
        votes, points, counts = [], [], []
        for class_id in pixel_index.class_ids:
            pixels = pixel_index.pixels(class_id)
            class_votes = vote_map.votes(class_id, pixels)
            if not has_crossing_lines(class_votes):
                continue
            self.class_ids.append(class_id)
            votes.append(class_votes)
            points.append(vote_map.pixel_coordinates(pixels))
            counts.append(pixel_index.count(class_id))

        self._counts = np.array(counts, dtype=np.int64)
        self._offsets = np.concatenate(([0], np.cumsum(self._counts)[:-1])).astype(np.int64)
        self._votes = np.concatenate(votes) if votes else np.zeros((0, 2))
        self._points = np.concatenate(points) if points else np.zeros((0, 2))

    def draw(self, rng: np.random.Generator) -> Optional[Hypothesis]:
        """
        Run one draw, retrying degenerate pixel pairs.

        Args:
            rng: Generator owned by this draw

        Returns:
            New hypothesis, or None if no class can produce one or every attempt was degenerate
        """
        if not self.class_ids:
            return None

        remaining = self.max_attempts
        while remaining > 0:
            batch = min(remaining, ATTEMPT_BATCH)
            remaining -= batch

            choice = rng.integers(len(self.class_ids), size=batch)
            # two pixels per attempt, with replacement
            local = rng.integers(0, self._counts[choice][:, None], size=(batch, 2))
            flat = self._offsets[choice][:, None] + local

            centers, valid = triangulate_centers(
                self._votes[flat[:, 0]],
                self._points[flat[:, 0]],
                self._votes[flat[:, 1]],
                self._points[flat[:, 1]],
            )
            hits = np.flatnonzero(valid)
            if hits.size:
                first = hits[0]
                return Hypothesis(class_id=self.class_ids[choice[first]], center=centers[first])

        return None

    def sample(
        self,
        pool: HypothesisPool,
        num_draws: int,
        rngs: Sequence[np.random.Generator],
        executor: Optional[Executor] = None,
    ) -> int:
        """
        Run independent draws and insert the successful ones into the pool.

        Draws fill their own result slot and are merged in draw order afterwards,
        so the pool content does not depend on thread scheduling.

        Args:
            pool: Pool receiving the hypotheses
            num_draws: Number of draws
            rngs: One generator per draw
            executor: Optional executor running the draws in parallel

        Returns:
            Number of inserted hypotheses
        """
        if len(rngs) < num_draws:
            raise ValueError(f"need {num_draws} generators, got {len(rngs)}")

        if executor is not None and num_draws > 1:
            drawn: List[Optional[Hypothesis]] = list(executor.map(self.draw, rngs[:num_draws]))
        else:
            drawn = [self.draw(rng) for rng in rngs[:num_draws]]

        inserted = 0
        for hyp in drawn:
            if hyp is not None:
                pool.insert(hyp)
                inserted += 1
        return inserted
