"""
Trace text and timeline document reading using streaming parsers.
"""

import ijson
from typing import Any, Dict, Iterator, List

PROGRESS_EVERY = 100_000


class TraceFileProcessor:
    """Streams raw function_graph text from a file."""

    @staticmethod
    def iter_lines(file_path: str) -> Iterator[str]:
        """
        Yield the lines of a trace file one at a time.

        Args:
            file_path: Path to the trace text file

        Yields:
            Lines with their trailing newline
        """
        print(f"Processing {file_path}...")

        line_count = 0
        with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
            for line in f:
                line_count += 1
                if line_count % PROGRESS_EVERY == 0:
                    print(f"  Read {line_count} lines...")
                yield line

        print(f"Completed reading file: {line_count} lines.")


class TimelineFileProcessor:
    """Reads timeline documents without loading them whole."""

    @staticmethod
    def _entries_prefix(file_path: str) -> str:
        """'item' for a bare JSON list, 'timeline.item' for a document."""
        with open(file_path, 'rb') as f:
            for chunk in iter(lambda: f.read(64), b''):
                stripped = chunk.lstrip()
                if stripped:
                    return 'item' if stripped[:1] == b'[' else 'timeline.item'
        return 'timeline.item'

    @classmethod
    def iter_entries(cls, file_path: str) -> Iterator[Dict[str, Any]]:
        """
        Stream timeline entries as plain dictionaries.

        Args:
            file_path: Path to a timeline JSON document (or bare entry list)

        Yields:
            Entry dictionaries in document order
        """
        prefix = cls._entries_prefix(file_path)
        with open(file_path, 'rb') as f:
            for entry in ijson.items(f, prefix, use_float=True):
                yield entry

    @classmethod
    def collect_function_names(cls, file_path: str) -> List[str]:
        """
        Distinct function names of a timeline, in order of first appearance.

        Args:
            file_path: Path to a timeline JSON document

        Returns:
            List of function names
        """
        names = {}
        for entry in cls.iter_entries(file_path):
            name = entry.get('function') or entry.get('func')
            if name:
                names.setdefault(name, None)
        print(f"Found {len(names)} distinct functions in {file_path}.")
        return list(names)

    @classmethod
    def load_document(cls, file_path: str) -> Dict[str, Any]:
        """
        Load a timeline document as a plain dictionary.

        A bare entry list is wrapped as {'metadata': {}, 'timeline': [...]}.

        Args:
            file_path: Path to a timeline JSON document

        Returns:
            Document dictionary with at least 'metadata' and 'timeline'
        """
        if cls._entries_prefix(file_path) == 'item':
            return {'metadata': {}, 'timeline': list(cls.iter_entries(file_path))}

        with open(file_path, 'rb') as f:
            document = next(ijson.items(f, '', use_float=True), None)
        if not isinstance(document, dict):
            raise ValueError(f"{file_path} is not a timeline document")
        document.setdefault('metadata', {})
        document.setdefault('timeline', [])
        return document
