"""
ftrace Timeline - Kernel function_graph trace timelines with source resolution
"""

__version__ = "1.0.0"

from .core.pipeline import SourceAnnotator, TimelineBuilder
from .core.types import FunctionLocation, ResolverConfig, Timeline, TimelineConfig, TimelineEntry

__all__ = [
    "SourceAnnotator",
    "TimelineBuilder",
    "FunctionLocation",
    "ResolverConfig",
    "Timeline",
    "TimelineConfig",
    "TimelineEntry",
]
