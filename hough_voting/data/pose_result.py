"""Data classes for the voting output records."""

from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class OutputRecord:
    """
    Detected object instance with its 2D box and 6DoF pose.

    Attributes:
        batch_index: Index of the image inside the batch.
        class_id: Class ID of the detected object (never background).
        box: 2D bounding box (x1, y1, x2, y2).
        quaternion: Rotation as unit quaternion (w, x, y, z).
        translation: Translation (tx, ty, tz).
    """

    batch_index: int
    class_id: int
    box: Tuple[float, float, float, float]
    quaternion: Tuple[float, float, float, float]
    translation: Tuple[float, float, float]

    @property
    def width(self) -> float:
        return self.box[2] - self.box[0]

    @property
    def height(self) -> float:
        return self.box[3] - self.box[1]

    def jittered(self, sign_x: int, sign_y: int, ratio: float = 0.05) -> "OutputRecord":
        """
        Copy of this record with the box shifted by a fraction of its size.

        Args:
            sign_x: Direction of the horizontal shift (-1 or 1)
            sign_y: Direction of the vertical shift (-1 or 1)
            ratio: Shift as a fraction of the box width/height

        Returns:
            Record sharing the pose, with a shifted box of identical size
        """
        w, h = self.width, self.height
        x1 = self.box[0] + sign_x * ratio * w
        y1 = self.box[1] + sign_y * ratio * h
        return replace(self, box=(x1, y1, x1 + w, y1 + h))

    def to_vector(self) -> np.ndarray:
        """[batch, cls, x1, y1, x2, y2, qw, qx, qy, qz, tx, ty, tz]"""
        return np.array(
            [self.batch_index, self.class_id, *self.box, *self.quaternion, *self.translation],
            dtype=np.float32,
        )
