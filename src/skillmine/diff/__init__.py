"""Line-level content diffing."""

from skillmine.diff.algorithms import (
    DiffAlgorithm,
    Edit,
    EditType,
    HistogramDiff,
    MyersDiff,
    SupportedAlgorithm,
    get_algorithm,
)
from skillmine.diff.content import (
    AlgorithmContentDiff,
    ContentDiff,
    ContentDiffService,
    compute_diff,
    compute_text_diff,
)

__all__ = [
    "DiffAlgorithm",
    "Edit",
    "EditType",
    "HistogramDiff",
    "MyersDiff",
    "SupportedAlgorithm",
    "get_algorithm",
    "ContentDiff",
    "AlgorithmContentDiff",
    "ContentDiffService",
    "compute_diff",
    "compute_text_diff",
]
