"""
6DoF pose search for finalized hypotheses.

The pose is searched with a bounded derivative-free optimizer that maximizes
the IoU between the projected 3D box of the class and the 2D box estimated
from the votes.
"""

from dataclasses import dataclass
from typing import Callable, Tuple

import numpy as np
from scipy.optimize import minimize

from ..config import VotingConfig
from ..data.hypothesis import Hypothesis
from ..utils.camera import CameraIntrinsics
from .geometry import Rect, project_bbox, rect_iou

Objective = Callable[[np.ndarray], float]
Optimizer = Callable[[Objective, np.ndarray, np.ndarray, np.ndarray, int], Tuple[np.ndarray, float]]


def nelder_mead(
    objective: Objective,
    x0: np.ndarray,
    lower: np.ndarray,
    upper: np.ndarray,
    max_evaluations: int,
) -> Tuple[np.ndarray, float]:
    """
    Bounded Nelder-Mead minimization returning the best point evaluated.

    The initial simplex steps a tenth of the search range along every axis, so
    flat objectives such as box IoU still see differences around x0.

    Args:
        objective: Function to minimize
        x0: Initial point (inside the bounds)
        lower: Lower bounds
        upper: Upper bounds
        max_evaluations: Maximum number of objective evaluations

    Returns:
        Tuple of (best point, best value)
    """
    x0 = np.asarray(x0, dtype=np.float64)
    lower = np.asarray(lower, dtype=np.float64)
    upper = np.asarray(upper, dtype=np.float64)

    best = {"x": x0.copy(), "value": float(objective(x0))}

    def tracked(x: np.ndarray) -> float:
        value = float(objective(x))
        if value < best["value"]:
            best["x"], best["value"] = np.array(x, dtype=np.float64), value
        return value

    step = 0.1 * (upper - lower)
    simplex = np.vstack([x0] + [x0 + np.eye(len(x0))[i] * step[i] for i in range(len(x0))])
    simplex = np.clip(simplex, lower, upper)

    if max_evaluations > 1:
        minimize(
            tracked,
            x0,
            method="Nelder-Mead",
            bounds=list(zip(lower, upper)),
            options={
                "maxfev": max_evaluations - 1,
                "initial_simplex": simplex,
                "xatol": 1e-6,
                "fatol": 1e-9,
            },
        )

    return best["x"], best["value"]


@dataclass
class PoseEstimate:
    """Result of the pose search for one hypothesis."""

    box: Tuple[float, float, float, float]
    rvec: np.ndarray
    tvec: np.ndarray
    iou: float


class PoseOptimizer:
    """Searches the pose whose projected 3D box best overlaps the voted 2D box."""

    def __init__(self, config: VotingConfig, optimizer: Optimizer = nelder_mead) -> None:
        """
        Args:
            config: Search ranges, evaluation budget and box expansion
            optimizer: Callable optimize(objective, x0, lower, upper, max_evaluations)
        """
        self.config = config
        self.optimizer = optimizer

    @staticmethod
    def initial_box(
        hyp: Hypothesis, image_width: int, image_height: int
    ) -> Tuple[float, float, float, float]:
        """
        Box around the hypothesis center sized by its inlier spread, clipped to the image.

        Returns:
            Box (x1, y1, x2, y2)
        """
        width, height = hyp.compute_width_height()
        cx, cy = hyp.center
        return (
            max(cx - width / 2, 0.0),
            max(cy - height / 2, 0.0),
            min(cx + width / 2, float(image_width)),
            min(cy + height / 2, float(image_height)),
        )

    @staticmethod
    def initial_pose(
        box: Tuple[float, float, float, float], intrinsics: CameraIntrinsics
    ) -> np.ndarray:
        """No rotation and the back-projected box center at unit depth: [rx, ry, rz, tx, ty, tz]."""
        cx = (box[0] + box[2]) / 2
        cy = (box[1] + box[3]) / 2
        ray = intrinsics.backproject(cx, cy)
        return np.array([0.0, 0.0, 0.0, ray[0], ray[1], 1.0])

    def bounds(self, x0: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        cfg = self.config
        span = np.array(
            [
                cfg.rot_range,
                cfg.rot_range,
                cfg.rot_range,
                cfg.trans_range_xy,
                cfg.trans_range_xy,
                cfg.trans_range_z,
            ]
        )
        return x0 - span, x0 + span

    def optimize(
        self,
        hyp: Hypothesis,
        bbox_3d: np.ndarray,
        intrinsics: CameraIntrinsics,
        image_width: int,
        image_height: int,
    ) -> PoseEstimate:
        """
        Estimate the pose and final 2D box of a finalized hypothesis.

        Args:
            hyp: Finalized hypothesis
            bbox_3d: 8x3 box corners of the hypothesis class
            intrinsics: Camera intrinsics of the image
            image_width: Image width in pixels
            image_height: Image height in pixels

        Returns:
            PoseEstimate with the expanded projected box and the best pose found
        """
        box = self.initial_box(hyp, image_width, image_height)
        x1, y1 = int(box[0]), int(box[1])
        target: Rect = (x1, y1, int(box[2] - box[0]), int(box[3] - box[1]))
        camera_matrix = intrinsics.matrix()

        def energy(pose: np.ndarray) -> float:
            projected = project_bbox(
                bbox_3d, pose[:3], pose[3:], camera_matrix, image_width, image_height
            )
            return -rect_iou(projected, target)

        x0 = self.initial_pose(box, intrinsics)
        lower, upper = self.bounds(x0)
        pose, value = self.optimizer(energy, x0, lower, upper, self.config.pose_iterations)
        pose = np.asarray(pose, dtype=np.float64)

        # use the projected 3D box, expanded on every side
        px, py, pw, ph = project_bbox(
            bbox_3d, pose[:3], pose[3:], camera_matrix, image_width, image_height
        )
        ratio = self.config.box_expansion
        final_box = (
            px - ratio * pw,
            py - ratio * ph,
            px + (1 + ratio) * pw,
            py + (1 + ratio) * ph,
        )
        return PoseEstimate(box=final_box, rvec=pose[:3], tvec=pose[3:], iou=-float(value))
