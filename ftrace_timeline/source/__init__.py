"""Source tree resolution: definition lookup and body extraction."""

from .body_extractor import ExtractedBody, FunctionBodyExtractor
from .kernel_version import map_upstream_version
from .resolver import ResolutionTimeout, SourceLocationResolver, lookup_symbol

__all__ = [
    "ExtractedBody",
    "FunctionBodyExtractor",
    "ResolutionTimeout",
    "SourceLocationResolver",
    "lookup_symbol",
    "map_upstream_version",
]
