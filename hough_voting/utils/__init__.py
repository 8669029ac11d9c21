"""Camera and performance utilities."""

from .camera import CameraIntrinsics
from .performance import PerformanceMonitor

__all__ = ["CameraIntrinsics", "PerformanceMonitor"]
