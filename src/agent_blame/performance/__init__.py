"""Performance instrumentation for the detection pipeline."""

from .log import PerformanceLog, PerformanceSummary
from .tracker import (
    Bottleneck,
    BottleneckAnalysis,
    FilterStage,
    PerformanceMetrics,
    PerformanceTracker,
    classify_bottleneck,
)

__all__ = [
    "Bottleneck",
    "BottleneckAnalysis",
    "FilterStage",
    "PerformanceLog",
    "PerformanceMetrics",
    "PerformanceSummary",
    "PerformanceTracker",
    "classify_bottleneck",
]
