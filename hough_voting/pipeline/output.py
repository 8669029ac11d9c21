"""
Output records and pose regression targets.

Every finalized hypothesis yields one record plus four box-jittered copies;
targets and weights are filled from the ground-truth pose with the same
(batch, class) pair.
"""

from typing import List, Sequence, Tuple

import numpy as np

from ..data.pose_result import OutputRecord

# sign pattern (x, y) of the jittered copies
JITTER_SIGNS = ((-1, -1), (1, -1), (-1, 1), (1, 1))

GT_QUATERNION = slice(6, 10)


class OutputAssembler:
    """Builds output records and their regression targets."""

    def __init__(self, jitter: float = 0.05) -> None:
        self.jitter = jitter

    def assemble(
        self,
        batch_index: int,
        class_id: int,
        box: Tuple[float, float, float, float],
        quaternion: Tuple[float, float, float, float],
        translation: Tuple[float, float, float],
    ) -> List[OutputRecord]:
        """
        Canonical record followed by its four jittered variants.

        Args:
            batch_index: Image index inside the batch
            class_id: Detected class
            box: Box (x1, y1, x2, y2)
            quaternion: Rotation (w, x, y, z)
            translation: Translation (tx, ty, tz)

        Returns:
            List of 5 records sharing the pose
        """
        record = OutputRecord(
            batch_index=int(batch_index),
            class_id=int(class_id),
            box=tuple(float(v) for v in box),
            quaternion=tuple(float(v) for v in quaternion),
            translation=tuple(float(v) for v in translation),
        )
        return [record] + [record.jittered(sx, sy, self.jitter) for sx, sy in JITTER_SIGNS]

    @staticmethod
    def compute_target_weight(
        records: Sequence[OutputRecord], poses_gt: np.ndarray, num_classes: int
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Quaternion targets and weights for every record.

        Args:
            records: Output records
            poses_gt: Ground-truth rows (G, 13) [batch, cls, ..., qw, qx, qy, qz, tx, ty, tz]
            num_classes: Number of classes including background

        Returns:
            Tuple of (target, weight), each (N, 4 * num_classes) float32
        """
        target = np.zeros((len(records), 4 * num_classes), dtype=np.float32)
        weight = np.zeros_like(target)

        poses_gt = np.asarray(poses_gt, dtype=np.float32).reshape(-1, 13)
        gt_keys = [(int(row[0]), int(row[1])) for row in poses_gt]

        for i, record in enumerate(records):
            key = (record.batch_index, record.class_id)
            if key not in gt_keys:
                continue
            gt = poses_gt[gt_keys.index(key)]
            slot = slice(4 * record.class_id, 4 * record.class_id + 4)
            target[i, slot] = gt[GT_QUATERNION]
            weight[i, slot] = 1.0

        return target, weight
