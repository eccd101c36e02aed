"""
Main orchestrators for timeline construction and source annotation.
"""

import os
import time
from typing import Any, Dict, Iterable, Optional

from ..core.types import FunctionLocation, ResolverConfig, Timeline, TimelineConfig
from ..extractors import LayerAnnotator
from ..formatters import format_duration
from ..processors import (
    LocationMerger,
    ParallelResolver,
    TimelineAssembler,
    TimelineFileProcessor,
    TraceFileProcessor,
    TraceStreamParser,
)
from ..source import map_upstream_version
from ..storage import DocumentStore
from ..web import prepare_timeline_document, summarize_resolution


class TimelineBuilder:
    """Turns function_graph trace text into a timeline."""

    def __init__(
        self,
        indent_width: int = 2,
        timestamp_scale: int = 1000,
        placeholder_dir: str = 'net/core'
    ):
        """
        Initialize the TimelineBuilder.

        Args:
            indent_width: Characters of indentation per nesting level
            timestamp_scale: Factor turning step numbers into timestamps
            placeholder_dir: Directory of placeholder source files
        """
        self.config = TimelineConfig(
            indent_width=indent_width,
            timestamp_scale=timestamp_scale,
            placeholder_dir=placeholder_dir
        )
        self.parser = TraceStreamParser(self.config)
        self.assembler = TimelineAssembler(self.config)
        self.timeline = Timeline()

    def process_lines(self, lines: Iterable[str]) -> Timeline:
        """
        Parse and assemble a timeline from raw lines.

        Args:
            lines: Iterable of trace lines

        Returns:
            Timeline (status NO_DATA when nothing usable was found)
        """
        parse_result = self.parser.parse(lines)
        self.timeline = self.assembler.assemble(parse_result)
        return self.timeline

    def process_trace_file(self, file_path: str) -> Timeline:
        """
        Parse a trace text file and report a summary.

        Args:
            file_path: Path to the captured trace text
        """
        timeline = self.process_lines(TraceFileProcessor.iter_lines(file_path))
        self.print_summary()
        return timeline

    def print_summary(self):
        summary = self.timeline.summary
        if not self.timeline.has_data:
            print(f"\nNo timeline entries produced ({summary.lines_read} lines read, "
                  f"{summary.lines_skipped} skipped)")
            return
        print("\nSummary:")
        print(f"  Total entries: {summary.total_entries}")
        print(f"  TX flow: {summary.transmit}")
        print(f"  RX flow: {summary.receive}")
        print(f"  Other: {summary.other}")
        print(f"  Max call stack depth: {summary.max_stack_depth}")
        print(f"  Distinct functions: {len(self.timeline.function_names())}")
        print(f"  Total traced time: {format_duration(summary.total_duration_us)}")
        print(f"  Lines skipped: {summary.lines_skipped} of {summary.lines_read}")

    def to_document(self, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return prepare_timeline_document(self.timeline, metadata)


class SourceAnnotator:
    """Resolves timeline functions to kernel sources and merges the results."""

    def __init__(
        self,
        source_root: str,
        config: Optional[ResolverConfig] = None,
        output_dir: Optional[str] = None
    ):
        """
        Initialize the SourceAnnotator.

        Args:
            source_root: Root of the kernel source tree
            config: ResolverConfig instance
            output_dir: Directory for produced documents (timestamped default)
        """
        self.source_root = source_root
        self.config = config or ResolverConfig()
        self.resolver = ParallelResolver(source_root, self.config)
        self.output_dir = output_dir
        self.locations: Dict[str, FunctionLocation] = {}

    def resolve_functions(self, functions: Iterable[str]) -> Dict[str, FunctionLocation]:
        """
        Resolve function names, printing one line per function.

        Args:
            functions: Function names (duplicates resolved once)

        Returns:
            Mapping of function name -> FunctionLocation
        """
        names = list(dict.fromkeys(functions))
        print(f"Extracting source for {len(names)} functions from {self.source_root}...")
        started = time.monotonic()

        def report(completed, total, location):
            if location.is_resolved:
                print(f"  [{completed}/{total}] {location.function}: "
                      f"{location.file}:{location.line} ({location.body_line_count} lines)")
            else:
                print(f"  [{completed}/{total}] {location.function}: {location.status.value}")

        self.locations = self.resolver.resolve_all(names, progress_callback=report)

        stats = summarize_resolution(self.locations)
        print(f"Resolved {stats['counts']['resolved']} of {stats['total_functions']} functions "
              f"in {time.monotonic() - started:.2f}s")
        return self.locations

    def annotate_document(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Resolve every function of a timeline document and merge the locations.

        Args:
            document: Timeline document

        Returns:
            New document with file/line fields replaced
        """
        names = [entry.get('function') or entry.get('func') for entry in document.get('timeline', [])]
        self.resolve_functions(name for name in names if name)
        return LocationMerger.merge_document(document, self.locations)

    def annotate_timeline_file(self, timeline_path: str) -> Dict[str, Any]:
        """
        Full annotation run for a timeline file.

        Writes the function database, per-function sources, the annotated
        timeline and the annotation database to the output directory.

        Args:
            timeline_path: Path to the timeline JSON document

        Returns:
            Dictionary describing the written outputs
        """
        functions = TimelineFileProcessor.collect_function_names(timeline_path)
        self.resolve_functions(functions)

        document = TimelineFileProcessor.load_document(timeline_path)
        merged = LocationMerger.merge_document(document, self.locations)

        kernel_version = document.get('metadata', {}).get('kernel_version', 'unknown')
        annotations = LayerAnnotator.annotate_all(self.locations)

        store = DocumentStore(self.output_dir)
        written = [
            store.write_function_db(self.locations),
            store.write_annotated_timeline(merged),
            store.write_annotation_db(annotations, {
                'generated_at': time.strftime('%Y-%m-%dT%H:%M:%S%z'),
                'version': '1.0-production',
                'kernel_version': kernel_version,
                'upstream_version': map_upstream_version(kernel_version),
                'source_root': os.path.abspath(self.source_root),
            }),
        ]
        sources = store.write_function_sources(self.locations)

        print(f"\nOutput files in {store.output_dir}:")
        for doc in written:
            print(f"  - {doc.name} ({doc.size_bytes} bytes)")
        print(f"  - {len(sources)} individual sources (*.c)")

        return {
            'output_dir': str(store.output_dir),
            'documents': [doc.to_dict() for doc in written],
            'sources': [str(path) for path in sources],
            'resolution': summarize_resolution(self.locations),
        }
