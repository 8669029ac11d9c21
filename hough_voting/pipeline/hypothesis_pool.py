"""
Hypothesis bookkeeping and the preemptive RANSAC main loop.

The pool holds for every class a list of center hypotheses. Scoring, pruning
and refinement are repeated until every class has a single hypothesis that
has been refined often enough.
"""

import math
import threading
from concurrent.futures import Executor
from typing import Callable, Dict, List, Optional

import numpy as np

from ..data.hypothesis import Hypothesis


class HypothesisPool:
    """Per-class lists of hypotheses with locked insertion and pruning."""

    def __init__(self) -> None:
        self._hyps: Dict[int, List[Hypothesis]] = {}
        self._locks: Dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._inserted = 0

    def _lock_for(self, class_id: int) -> threading.Lock:
        with self._registry_lock:
            if class_id not in self._locks:
                self._locks[class_id] = threading.Lock()
                self._hyps[class_id] = []
            return self._locks[class_id]

    def insert(self, hyp: Hypothesis) -> None:
        """Add a hypothesis to its class list and stamp its insertion order."""
        lock = self._lock_for(hyp.class_id)
        with lock:
            with self._registry_lock:
                hyp.order = self._inserted
                self._inserted += 1
            self._hyps[hyp.class_id].append(hyp)

    @property
    def class_ids(self) -> List[int]:
        """Classes with at least one hypothesis, in ascending order."""
        return sorted(class_id for class_id, hyps in self._hyps.items() if hyps)

    def hypotheses(self, class_id: int) -> List[Hypothesis]:
        return list(self._hyps.get(class_id, []))

    def __len__(self) -> int:
        return sum(len(hyps) for hyps in self._hyps.values())

    def working_set(self, min_refinements: int) -> List[Hypothesis]:
        """
        Hypotheses that still need processing.

        A class contributes all of its hypotheses while more than one remains, and
        its last hypothesis until it has been refined min_refinements times.

        Args:
            min_refinements: Required refinement steps of the last hypothesis of a class

        Returns:
            List of hypotheses, grouped by ascending class ID
        """
        work = []
        for class_id in self.class_ids:
            hyps = self._hyps[class_id]
            for hyp in hyps:
                if len(hyps) > 1 or hyp.ref_steps < min_refinements:
                    work.append(hyp)
        return work

    def prune_class(self, class_id: int) -> int:
        """
        Sort the hypotheses of one class and discard the weaker half.

        Args:
            class_id: Class to prune

        Returns:
            Number of discarded hypotheses
        """
        with self._lock_for(class_id):
            hyps = self._hyps[class_id]
            if len(hyps) <= 1:
                return 0
            hyps.sort(key=Hypothesis.sort_key)
            keep = math.ceil(len(hyps) / 2)
            removed = len(hyps) - keep
            del hyps[keep:]
            return removed

    def prune(self, executor: Optional[Executor] = None) -> int:
        """Prune every class; returns the number of discarded hypotheses."""
        class_ids = self.class_ids
        if executor is not None and len(class_ids) > 1:
            return sum(executor.map(self.prune_class, class_ids))
        return sum(self.prune_class(class_id) for class_id in class_ids)

    def finalized(self) -> List[Hypothesis]:
        """The best hypothesis of every class."""
        return [min(self._hyps[class_id], key=Hypothesis.sort_key) for class_id in self.class_ids]


def _run_tasks(
    task: Callable[[Hypothesis, np.random.Generator], None],
    work: List[Hypothesis],
    seed_seq: np.random.SeedSequence,
    executor: Optional[Executor],
) -> None:
    rngs = [np.random.default_rng(child) for child in seed_seq.spawn(len(work))]
    if executor is not None and len(work) > 1:
        # consume the iterator so worker exceptions propagate
        list(executor.map(task, work, rngs))
    else:
        for hyp, rng in zip(work, rngs):
            task(hyp, rng)


def run_preemptive_ransac(
    pool: HypothesisPool,
    scorer,
    refiner,
    min_refinements: int,
    seed_seq: np.random.SeedSequence,
    executor: Optional[Executor] = None,
) -> int:
    """
    Score, prune and refine the pool until it has converged.

    Args:
        pool: Pool with the initial hypotheses
        scorer: InlierScorer providing score(hyp, rng)
        refiner: HypothesisRefiner providing refine(hyp, rng)
        min_refinements: Refinement steps required for the final hypothesis of a class
        seed_seq: Seed sequence spawning one generator per task
        executor: Optional executor for the parallel stages

    Returns:
        Number of rounds run
    """

    def refine_step(hyp: Hypothesis, rng: np.random.Generator) -> None:
        refiner.refine(hyp, rng)
        hyp.ref_steps += 1

    rounds = 0
    work = pool.working_set(min_refinements)
    while work:
        # draw a bigger batch of pixels every round and count inliers
        _run_tasks(scorer.score, work, seed_seq, executor)

        pool.prune(executor)
        work = pool.working_set(min_refinements)

        _run_tasks(refine_step, work, seed_seq, executor)
        work = pool.working_set(min_refinements)
        rounds += 1

    return rounds
