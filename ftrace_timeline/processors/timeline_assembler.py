"""
Assembles parsed trace events into the final timeline.
"""

from typing import Optional

from ..core.types import (
    FlowDirection,
    EventKind,
    SourceInfo,
    Timeline,
    TimelineConfig,
    TimelineEntry,
    TimelineStatus,
    TimelineSummary,
)
from ..extractors import DirectionTracker, FlowClassifier, StateSynthesizer
from ..formatters import format_duration
from .trace_parser import ParseResult

CONTEXT_LABELS = {
    EventKind.ENTRY: 'Function entry',
    EventKind.CALL: 'Function call',
}


class TimelineAssembler:
    """Classifies, synthesizes and renumbers events into TimelineEntry records."""

    def __init__(self, config: Optional[TimelineConfig] = None):
        """
        Initialize the assembler.

        Args:
            config: TimelineConfig instance (defaults apply when omitted)
        """
        self.config = config or TimelineConfig()

    def assemble(self, parse_result: ParseResult) -> Timeline:
        """
        Build the timeline from one parse pass.

        Args:
            parse_result: Output of TraceStreamParser.parse

        Returns:
            Timeline with dense steps 1..N; status NO_DATA when no event was
            recovered
        """
        summary = TimelineSummary(
            lines_read=parse_result.lines_read,
            lines_skipped=parse_result.lines_skipped,
        )
        if not parse_result.has_data:
            return Timeline(entries=[], summary=summary, status=TimelineStatus.NO_DATA)

        tracker = DirectionTracker()
        entries = []
        ordered = sorted(parse_result.events, key=lambda event: event.seq)

        for step, event in enumerate(ordered, 1):
            enclosing = event.call_stack[:-1]
            classified = FlowClassifier.classify(event.function, enclosing)
            direction = tracker.observe(classified)
            duration = event.duration_us or 0.0

            context = f"{CONTEXT_LABELS[event.kind]}: {event.function}"
            if duration:
                context += f" ({format_duration(duration)})"

            entries.append(TimelineEntry(
                step=step,
                timestamp=step * self.config.timestamp_scale,
                function=event.function,
                event_type=event.kind,
                flow_direction=direction,
                classified_direction=classified,
                call_stack=event.call_stack,
                buffer_state=StateSynthesizer.synthesize(event.function, direction, step),
                duration_us=duration,
                source_info=SourceInfo(
                    file=self.config.placeholder_file(event.function),
                    line=1,
                    context=context,
                ),
                cpu=event.cpu,
                task=event.task,
            ))

            if direction is FlowDirection.TRANSMIT:
                summary.transmit += 1
            elif direction is FlowDirection.RECEIVE:
                summary.receive += 1
            else:
                summary.other += 1
            summary.max_stack_depth = max(summary.max_stack_depth, len(event.call_stack))
            if len(event.call_stack) == 1:
                # top-level calls only; a caller's duration covers its children
                summary.total_duration_us += duration

        summary.total_entries = len(entries)
        return Timeline(entries=entries, summary=summary, status=TimelineStatus.PRODUCED)
