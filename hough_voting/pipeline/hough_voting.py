"""
Hough voting operator.

This module integrates all components: pixel indexing, hypothesis sampling,
the preemptive RANSAC loop, pose search and output assembly, and runs them
for every image of a batch.
"""

from concurrent.futures import Executor, ThreadPoolExecutor
from typing import List, Optional, Tuple

import numpy as np

from ..config import VotingConfig
from ..data.pose_result import OutputRecord
from ..utils.camera import CameraIntrinsics
from ..utils.performance import PerformanceMonitor
from .extents import Extent3DCatalog
from .geometry import rotation_to_quaternion
from .hypothesis_pool import HypothesisPool, run_preemptive_ransac
from .output import OutputAssembler
from .pixel_index import ClassPixelIndex, VoteMap
from .pose_optimizer import PoseOptimizer
from .refiner import HypothesisRefiner
from .sampler import HypothesisSampler
from .scorer import InlierScorer


def validate_inputs(
    label: np.ndarray,
    vertex: np.ndarray,
    extents: np.ndarray,
    meta_data: np.ndarray,
    poses_gt: np.ndarray,
) -> None:
    """
    Check ranks and shapes of the operator inputs.

    Raises:
        ValueError: If any input is malformed
    """
    if label.ndim != 3:
        raise ValueError(f"label must be 3-dimensional, got shape {label.shape}")
    if vertex.ndim != 4:
        raise ValueError(f"vertex must be 4-dimensional, got shape {vertex.shape}")
    if vertex.shape[:3] != label.shape:
        raise ValueError(
            f"vertex shape {vertex.shape} does not match label shape {label.shape}"
        )
    if vertex.shape[3] == 0 or vertex.shape[3] % 2 != 0:
        raise ValueError(f"vertex must have 2 * num_classes channels, got {vertex.shape[3]}")

    num_classes = vertex.shape[3] // 2
    if label.size and (label.min() < 0 or label.max() >= num_classes):
        raise ValueError(
            f"labels must lie in [0, {num_classes}), got [{label.min()}, {label.max()}]"
        )
    if extents.ndim != 2 or extents.shape != (num_classes, 3):
        raise ValueError(f"extents must have shape ({num_classes}, 3), got {extents.shape}")
    if meta_data.shape[0] != label.shape[0]:
        raise ValueError(
            f"meta data has {meta_data.shape[0]} entries for a batch of {label.shape[0]}"
        )
    if poses_gt.size and (poses_gt.ndim != 2 or poses_gt.shape[1] != 13):
        raise ValueError(f"poses_gt must have shape (num_gt, 13), got {poses_gt.shape}")


def estimate_center(
    label_map: np.ndarray,
    vertex_map: np.ndarray,
    catalog: Extent3DCatalog,
    batch_index: int,
    intrinsics: CameraIntrinsics,
    config: Optional[VotingConfig] = None,
    seed_seq: Optional[np.random.SeedSequence] = None,
    executor: Optional[Executor] = None,
    perf_monitor: Optional[PerformanceMonitor] = None,
) -> List[OutputRecord]:
    """
    Run Hough voting on one image.

    Args:
        label_map: Class ID per pixel (height, width)
        vertex_map: Votes (height, width, 2 * num_classes)
        catalog: 3D boxes of all classes
        batch_index: Index of the image inside the batch
        intrinsics: Camera intrinsics of the image
        config: Voting parameters
        seed_seq: Seed sequence for all random generators of this image
        executor: Optional executor for the parallel stages
        perf_monitor: Optional monitor receiving stage timings

    Returns:
        Output records, five per detected class
    """
    config = config or VotingConfig()
    seed_seq = seed_seq or np.random.SeedSequence(config.seed)
    perf_monitor = perf_monitor or PerformanceMonitor()

    vote_map = VoteMap(vertex_map)
    height, width = np.asarray(label_map).shape
    pixel_index = ClassPixelIndex(label_map, vote_map.num_classes, config.min_area)
    if not pixel_index.class_ids:
        return []

    # sample initial hypotheses, one generator per draw
    with perf_monitor.measure("sampling"):
        pool = HypothesisPool()
        sampler = HypothesisSampler(pixel_index, vote_map, config.max_attempts)
        rngs = [np.random.default_rng(s) for s in seed_seq.spawn(config.ransac_iterations)]
        sampler.sample(pool, config.ransac_iterations, rngs, executor)

    with perf_monitor.measure("ransac"):
        scorer = InlierScorer(
            pixel_index, vote_map, config.inlier_threshold, config.preemptive_batch
        )
        refiner = HypothesisRefiner(config.max_inliers)
        run_preemptive_ransac(
            pool, scorer, refiner, config.min_refinements, seed_seq, executor
        )

    with perf_monitor.measure("pose_estimation"):
        optimizer = PoseOptimizer(config)
        finalized = pool.finalized()

        def optimize(hyp):
            return optimizer.optimize(hyp, catalog.corners(hyp.class_id), intrinsics, width, height)

        if executor is not None and len(finalized) > 1:
            estimates = list(executor.map(optimize, finalized))
        else:
            estimates = [optimize(hyp) for hyp in finalized]

    assembler = OutputAssembler(config.jitter)
    records: List[OutputRecord] = []
    for hyp, estimate in zip(finalized, estimates):
        records.extend(
            assembler.assemble(
                batch_index,
                hyp.class_id,
                estimate.box,
                rotation_to_quaternion(estimate.rvec),
                tuple(estimate.tvec),
            )
        )
    return records


def hough_voting(
    label: np.ndarray,
    vertex: np.ndarray,
    extents: np.ndarray,
    meta_data: np.ndarray,
    poses_gt: Optional[np.ndarray] = None,
    config: Optional[VotingConfig] = None,
    perf_monitor: Optional[PerformanceMonitor] = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Detect object instances and their poses for a batch of images.

    Args:
        label: Class ID per pixel (batch, height, width)
        vertex: Votes (batch, height, width, 2 * num_classes)
        extents: 3D box half-extents per class (num_classes, 3)
        meta_data: Per-image meta data; the first 9 values are the intrinsic matrix
        poses_gt: Ground-truth poses (num_gt, 13)
        config: Voting parameters
        perf_monitor: Optional monitor receiving stage timings

    Returns:
        Tuple of
            - boxes (N, 6): batch, cls, x1, y1, x2, y2
            - poses (N, 7): qw, qx, qy, qz, tx, ty, tz
            - target (N, 4 * num_classes)
            - weight (N, 4 * num_classes)
    """
    config = config or VotingConfig()
    label = np.asarray(label)
    vertex = np.asarray(vertex)
    extents = np.asarray(extents, dtype=np.float64)
    meta_data = np.asarray(meta_data, dtype=np.float64)
    poses_gt = np.zeros((0, 13), dtype=np.float32) if poses_gt is None else np.asarray(poses_gt)

    validate_inputs(label, vertex, extents, meta_data, poses_gt)

    batch_size = label.shape[0]
    num_classes = vertex.shape[3] // 2
    meta_data = meta_data.reshape(batch_size, -1)
    catalog = Extent3DCatalog(extents)
    intrinsics = [CameraIntrinsics.from_meta_data(meta) for meta in meta_data]

    root_seq = np.random.SeedSequence(config.seed)
    image_seqs = root_seq.spawn(batch_size)

    records: List[OutputRecord] = []
    with ThreadPoolExecutor(max_workers=config.num_workers) as executor:
        for n in range(batch_size):
            records.extend(
                estimate_center(
                    label[n],
                    vertex[n],
                    catalog,
                    n,
                    intrinsics[n],
                    config,
                    image_seqs[n],
                    executor,
                    perf_monitor,
                )
            )

    if records:
        rois = np.stack([record.to_vector() for record in records])
    else:
        rois = np.zeros((0, 13), dtype=np.float32)

    target, weight = OutputAssembler.compute_target_weight(records, poses_gt, num_classes)
    return rois[:, :6].copy(), rois[:, 6:].copy(), target, weight


def hough_voting_grad(
    label: np.ndarray, vertex: np.ndarray, grad: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gradient of the voting operator, which is not differentiable.

    Args:
        label: Labels (batch, height, width)
        vertex: Votes (batch, height, width, 2 * num_classes)
        grad: Upstream gradient (ignored)

    Returns:
        Zero gradients shaped like label and vertex
    """
    label = np.asarray(label)
    vertex = np.asarray(vertex)
    if label.ndim != 3:
        raise ValueError(f"label must be 3-dimensional, got shape {label.shape}")
    if vertex.ndim != 4:
        raise ValueError(f"vertex must be 4-dimensional, got shape {vertex.shape}")

    dtype = vertex.dtype if np.issubdtype(vertex.dtype, np.floating) else np.float32
    return np.zeros(label.shape, dtype=dtype), np.zeros(vertex.shape, dtype=dtype)
