"""
Document store for persisting timeline and resolution outputs.

This module writes the produced documents verbatim into one output directory
and reads the function database back for later merges.
"""

import json
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..core.types import FunctionAnnotation, FunctionLocation
from ..web.result_builder import prepare_function_db

TIMELINE_FILE = 'timeline.json'
FUNCTION_DB_FILE = 'function_source_db.json'
ANNOTATED_TIMELINE_FILE = 'timeline_with_accurate_lines.json'
ANNOTATION_DB_FILE = 'annotation_database.json'

# Characters allowed in per-function source file names
SAFE_NAME = re.compile(r'[^A-Za-z0-9_.\-]')


def default_output_dir(prefix: str = 'annotations') -> str:
    """Timestamped directory name, e.g. annotations_20250902_143055."""
    return f"{prefix}_{time.strftime('%Y%m%d_%H%M%S')}"


@dataclass
class StoredDocument:
    """Path and size of a written document."""
    name: str
    path: Path
    size_bytes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'path': str(self.path),
            'size_bytes': self.size_bytes,
        }


class DocumentStore:
    """
    File-based storage for produced documents.

    Files are stored as: {output_dir}/{document}.json plus one
    {output_dir}/{function}.c per resolved function.

    Args:
        output_dir: Directory path for the documents
    """

    def __init__(self, output_dir: Optional[str] = None):
        self.output_dir = Path(output_dir or default_output_dir())
        self._ensure_output_dir()

    def _ensure_output_dir(self) -> None:
        """Create output directory if it doesn't exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _write_json(self, name: str, data: Any) -> StoredDocument:
        path = self.output_dir / name
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
        return StoredDocument(name=name, path=path, size_bytes=path.stat().st_size)

    def write_timeline(self, document: Dict[str, Any], name: str = TIMELINE_FILE) -> StoredDocument:
        """
        Write a timeline document.

        Raises:
            ValueError: If the document has no 'timeline' list
        """
        if not isinstance(document.get('timeline'), list):
            raise ValueError("Timeline document must contain a 'timeline' list")
        return self._write_json(name, document)

    def write_annotated_timeline(self, document: Dict[str, Any]) -> StoredDocument:
        return self.write_timeline(document, name=ANNOTATED_TIMELINE_FILE)

    def write_function_db(self, locations: Mapping[str, FunctionLocation]) -> StoredDocument:
        """Write the function database keyed by function name."""
        return self._write_json(FUNCTION_DB_FILE, prepare_function_db(locations))

    def read_function_db(self, path: Optional[str] = None) -> Dict[str, FunctionLocation]:
        """
        Read a function database back into FunctionLocation records.

        Args:
            path: Database path (default: the one in this store)

        Returns:
            Mapping of function name -> FunctionLocation

        Raises:
            ValueError: If the file is not a function database
        """
        db_path = Path(path) if path else self.output_dir / FUNCTION_DB_FILE
        with open(db_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{db_path} is not a function database")
        try:
            return {name: FunctionLocation.from_dict(name, record) for name, record in data.items()}
        except (KeyError, TypeError) as e:
            raise ValueError(f"{db_path} has an invalid record: {e}") from e

    def write_annotation_db(
        self,
        annotations: Mapping[str, FunctionAnnotation],
        metadata: Dict[str, Any]
    ) -> StoredDocument:
        data = {
            'metadata': dict(metadata, functions_count=len(annotations)),
            'annotations': {name: a.to_dict() for name, a in sorted(annotations.items())},
        }
        return self._write_json(ANNOTATION_DB_FILE, data)

    def write_function_sources(self, locations: Mapping[str, FunctionLocation]) -> List[Path]:
        """
        Write one .c file per resolved function.

        Returns:
            Paths of the written files
        """
        written = []
        for name, location in sorted(locations.items()):
            if not location.is_resolved:
                continue
            last_line = location.line + max(location.body_line_count, 1) - 1
            path = self.output_dir / f"{SAFE_NAME.sub('_', name)}.c"
            with open(path, 'w', encoding='utf-8') as f:
                f.write(f"// {name} from {location.file}:{location.line}\n")
                f.write(f"// Function definition (lines {location.line}-{last_line})\n\n")
                f.write(location.body_text)
            written.append(path)
        return written
