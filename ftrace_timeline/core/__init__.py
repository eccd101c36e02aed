"""Core components for timeline construction."""

from .pipeline import SourceAnnotator, TimelineBuilder
from .types import FunctionLocation, ResolverConfig, Timeline, TimelineConfig, TimelineEntry

__all__ = [
    "SourceAnnotator",
    "TimelineBuilder",
    "FunctionLocation",
    "ResolverConfig",
    "Timeline",
    "TimelineConfig",
    "TimelineEntry",
]
