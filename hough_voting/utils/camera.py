"""Utility functions for camera operations."""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class CameraIntrinsics:
    """Pinhole intrinsics of one image."""

    fx: float
    fy: float
    px: float
    py: float

    @classmethod
    def from_meta_data(cls, meta_data: np.ndarray) -> "CameraIntrinsics":
        """
        Extract the intrinsics from a flat per-image meta data record.

        The record starts with the row-major 3x3 intrinsic matrix, followed by
        its inverse and the world/live poses which are not used here.

        Args:
            meta_data: Flat meta data values of one image

        Returns:
            CameraIntrinsics instance
        """
        values = np.asarray(meta_data, dtype=np.float64).ravel()
        if values.size < 6:
            raise ValueError(
                f"meta data needs at least 6 values per image, got {values.size}"
            )
        return cls(
            fx=float(values[0]), fy=float(values[4]), px=float(values[2]), py=float(values[5])
        )

    def matrix(self) -> np.ndarray:
        """Camera intrinsic matrix (3x3)."""
        return np.array(
            [[self.fx, 0.0, self.px], [0.0, self.fy, self.py], [0.0, 0.0, 1.0]], dtype=np.float64
        )

    def backproject(self, x: float, y: float) -> np.ndarray:
        """Ray through pixel (x, y) at unit depth."""
        return np.array([(x - self.px) / self.fx, (y - self.py) / self.fy, 1.0])
