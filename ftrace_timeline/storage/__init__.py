"""Storage module for produced documents."""

from .document_store import (
    ANNOTATED_TIMELINE_FILE,
    ANNOTATION_DB_FILE,
    FUNCTION_DB_FILE,
    TIMELINE_FILE,
    DocumentStore,
    StoredDocument,
    default_output_dir,
)

__all__ = [
    'ANNOTATED_TIMELINE_FILE',
    'ANNOTATION_DB_FILE',
    'FUNCTION_DB_FILE',
    'TIMELINE_FILE',
    'DocumentStore',
    'StoredDocument',
    'default_output_dir',
]
