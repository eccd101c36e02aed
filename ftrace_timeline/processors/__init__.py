"""Processors for trace parsing, timeline assembly and location merging."""

from .file_processor import TraceFileProcessor, TimelineFileProcessor
from .trace_parser import TraceStreamParser, ParseResult
from .timeline_assembler import TimelineAssembler
from .location_merger import LocationMerger
from .parallel_resolver import ParallelResolver

__all__ = [
    "TraceFileProcessor",
    "TimelineFileProcessor",
    "TraceStreamParser",
    "ParseResult",
    "TimelineAssembler",
    "LocationMerger",
    "ParallelResolver",
]
