"""Data classes shared by the voting pipeline."""

from .hypothesis import Hypothesis
from .pose_result import OutputRecord

__all__ = ["Hypothesis", "OutputRecord"]
