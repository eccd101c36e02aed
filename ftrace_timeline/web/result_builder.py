"""
Result builder for JSON documents and API output.
"""

import time
from typing import Any, Dict, Mapping, Optional

from ..core.types import FunctionLocation, ResolutionStatus, Timeline
from ..formatters import format_duration

TOOL_VERSION = '1.0.0'


def prepare_timeline_document(timeline: Timeline, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Convert a timeline to its persisted document form.

    Args:
        timeline: Assembled Timeline
        metadata: Extra metadata (kernel_version, source, ...)

    Returns:
        Dictionary with metadata, summary, status and timeline entries
    """
    doc_metadata = {
        'kernel_version': 'unknown',
        'generated_at': time.strftime('%Y-%m-%dT%H:%M:%S%z'),
        'tool_version': TOOL_VERSION,
    }
    doc_metadata.update(metadata or {})

    summary = timeline.summary.to_dict()
    summary['total_duration_formatted'] = format_duration(timeline.summary.total_duration_us)

    return {
        'metadata': doc_metadata,
        'summary': summary,
        'status': timeline.status.value,
        'timeline': [entry.to_dict() for entry in timeline.entries],
    }


def prepare_function_db(locations: Mapping[str, FunctionLocation]) -> Dict[str, Any]:
    """Function database form of a resolution mapping."""
    return {name: location.to_dict() for name, location in sorted(locations.items())}


def summarize_resolution(locations: Mapping[str, FunctionLocation]) -> Dict[str, Any]:
    """
    Count resolution outcomes.

    Returns:
        Dictionary with per-status counts and the unresolved function names
    """
    counts = {status.value: 0 for status in ResolutionStatus}
    for location in locations.values():
        counts[location.status.value] += 1
    return {
        'total_functions': len(locations),
        'counts': counts,
        'unresolved': sorted(
            name for name, location in locations.items() if not location.is_resolved
        ),
    }
