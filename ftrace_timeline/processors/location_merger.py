"""
Splices resolved source locations back into timeline entries.
"""

from typing import Any, Dict, List, Mapping

from ..core.types import FunctionLocation, TimelineEntry


class LocationMerger:
    """Overwrites placeholder file/line fields, nothing else."""

    @staticmethod
    def merge_entries(
        entries: List[TimelineEntry],
        locations: Mapping[str, FunctionLocation]
    ) -> List[TimelineEntry]:
        """
        Return new entries with file/line taken from matching locations.

        Args:
            entries: Timeline entries (left untouched)
            locations: Mapping of function name -> FunctionLocation

        Returns:
            New list of entries
        """
        lookup = dict(locations)
        return [entry.with_location(lookup) for entry in entries]

    @staticmethod
    def merge_document(
        document: Dict[str, Any],
        locations: Mapping[str, FunctionLocation]
    ) -> Dict[str, Any]:
        """
        Merge locations into a serialized timeline document.

        Works on the plain JSON form so fields this package does not know
        about survive the merge unchanged. Entries in the older flat form
        ('func' with entry-level 'file'/'line') get their entry-level
        fields updated instead of 'source_info'.

        Args:
            document: Timeline document with a 'timeline' list
            locations: Mapping of function name -> FunctionLocation

        Returns:
            A new document; the input is not modified
        """
        merged = dict(document)
        merged_entries = []
        for entry in document.get('timeline', []):
            updated = dict(entry)
            location = locations.get(entry.get('function') or entry.get('func'))
            if location is not None:
                if 'source_info' in entry:
                    source_info = dict(entry['source_info'])
                    source_info['file'] = location.file
                    source_info['line'] = location.line
                    updated['source_info'] = source_info
                else:
                    updated['file'] = location.file
                    updated['line'] = location.line
            if 'call_stack' in entry:
                frames = []
                for frame in entry['call_stack']:
                    frame_location = locations.get(frame.get('function'))
                    if frame_location is not None:
                        frame = dict(frame)
                        frame['file'] = frame_location.file
                        frame['line'] = frame_location.line
                    frames.append(frame)
                updated['call_stack'] = frames
            merged_entries.append(updated)
        merged['timeline'] = merged_entries
        return merged
