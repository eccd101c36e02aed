"""Document and API result builders."""

from .result_builder import prepare_function_db, prepare_timeline_document, summarize_resolution

__all__ = ["prepare_function_db", "prepare_timeline_document", "summarize_resolution"]
