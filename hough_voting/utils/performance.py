"""Performance monitoring utilities for pipeline stages."""

import time
from contextlib import contextmanager
from typing import Dict, Iterator, List

import numpy as np


class PerformanceMonitor:
    """
    Monitor and report execution times for pipeline stages.

    Tracks execution times for the voting stages (sampling, RANSAC, pose search)
    and provides average times over a moving window.
    """

    def __init__(self, window_size: int = 30) -> None:
        """
        Initialize the performance monitor.

        Args:
            window_size: Number of measurements for moving average calculation.
        """
        self.stages: Dict[str, List[float]] = {}
        self.window_size = window_size

    def start_timer(self) -> float:
        """Start timing a stage."""
        return time.perf_counter()

    def end_timer(self, stage_name: str, start_time: float) -> float:
        """
        End timing for a stage and record the duration.

        Args:
            stage_name: Name of the pipeline stage.
            start_time: Start time returned by start_timer.

        Returns:
            float: Elapsed time in seconds.
        """
        elapsed = time.perf_counter() - start_time
        self.stages.setdefault(stage_name, []).append(elapsed)

        # Keep only the most recent window_size measurements
        if len(self.stages[stage_name]) > self.window_size:
            self.stages[stage_name] = self.stages[stage_name][-self.window_size :]

        return elapsed

    @contextmanager
    def measure(self, stage_name: str) -> Iterator[None]:
        """Time the enclosed block as one measurement of stage_name."""
        start = self.start_timer()
        try:
            yield
        finally:
            self.end_timer(stage_name, start)

    def get_average_time(self, stage_name: str) -> float:
        """Get the average execution time for a stage in milliseconds."""
        if stage_name not in self.stages or not self.stages[stage_name]:
            return 0.0

        return float(np.mean(self.stages[stage_name])) * 1000

    def get_all_times(self) -> Dict[str, float]:
        """Get average execution times for all monitored stages in ms."""
        return {stage: self.get_average_time(stage) for stage in self.stages}
