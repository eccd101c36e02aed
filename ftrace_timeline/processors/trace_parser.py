"""
Stateful parser for function_graph tracer output.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..core.types import CallFrame, EventKind, RawTraceLine, TimelineConfig, TraceEvent

# Example lines (funcgraph-proc, funcgraph-duration, funcgraph-cpu):
#  0)    <idle>-0    |               |  netif_receive_skb_list_internal() {
#  0)    <idle>-0    |   1.333 us    |    skb_xmit_done();
#  0)    <idle>-0    |   0.750 us    |  }
LINE_PATTERN = re.compile(
    r'^\s*(?:\d+\.\d+\s*\|\s*)?'          # optional funcgraph-abstime column
    r'(?P<cpu>\d+)\)'
    r'(?:(?P<task>[^|]*)\|)?'              # optional funcgraph-proc column
    r'(?P<duration>[^|]*)\|'
    r'(?P<indent> *)(?P<body>\S.*?)\s*$'
)

ENTRY_PATTERN = re.compile(r'^(?P<func>[^\s(){};]+(?:\s+\[[^\]]*\])?)\s*\(\)\s*\{$')
EXIT_PATTERN = re.compile(r'^\}(?:\s*/\*.*\*/)?$')
SINGLE_PATTERN = re.compile(r'^(?P<func>[^\s(){};]+(?:\s+\[[^\]]*\])?)\s*\(\);')

DURATION_PATTERN = re.compile(r'(\d+(?:\.\d*)?)\s*us')


def match_trace_line(line: str) -> Optional[RawTraceLine]:
    """
    Split a function_graph line into its columns.

    Returns:
        RawTraceLine or None for headers, banners and anything else that does
        not carry the CPU/duration/body columns.
    """
    stripped = line.rstrip('\r\n')
    if not stripped.strip() or stripped.lstrip().startswith('#'):
        return None
    match = LINE_PATTERN.match(stripped)
    if not match:
        return None
    return RawTraceLine(
        cpu=int(match.group('cpu')),
        task=(match.group('task') or '').strip(),
        duration=match.group('duration'),
        indent=match.group('indent'),
        body=match.group('body'),
    )


def parse_duration(duration_field: str) -> float:
    """
    Parse a duration column such as '  1.333 us', '+ 12.5 us' or '!  101.2 us'.

    Returns:
        Duration in microseconds, 0.0 when the column is empty or unparseable.
    """
    if not duration_field or 'us' not in duration_field:
        return 0.0
    match = DURATION_PATTERN.search(duration_field)
    if not match:
        return 0.0
    try:
        return float(match.group(1))
    except ValueError:
        return 0.0


def clean_function_name(token: str) -> str:
    """Strip module tags such as 'nf_conntrack_in [nf_conntrack]'."""
    name = token.split()[0].strip()
    if '[' in name:
        name = name.split('[')[0].strip()
    return name


@dataclass
class ParseResult:
    """Events recovered by one parse pass plus line accounting."""
    events: List[TraceEvent] = field(default_factory=list)
    lines_read: int = 0
    lines_skipped: int = 0

    @property
    def has_data(self) -> bool:
        return bool(self.events)


class TraceStreamParser:
    """
    Reconstructs call stacks and durations from function_graph text.

    The parser owns a single call stack which is unwound and refilled as the
    output resumes between CPUs and sibling calls, so missing exits are
    tolerated. Every entry and leaf call gets the next step number.
    """

    def __init__(self, config: Optional[TimelineConfig] = None):
        self.config = config or TimelineConfig()

    def parse(self, lines: Iterable[str]) -> ParseResult:
        """
        Parse trace lines in order.

        Args:
            lines: Iterable of raw trace lines (newlines optional)

        Returns:
            ParseResult with events sorted by step and renumbered 1..N
        """
        result = ParseResult()
        stack: List[CallFrame] = []
        open_events: List[TraceEvent] = []  # parallel to stack
        step = 0

        for line in lines:
            result.lines_read += 1
            raw = match_trace_line(line)
            if raw is None:
                result.lines_skipped += 1
                continue

            depth = len(raw.indent) // self.config.indent_width
            body = raw.body

            entry_match = ENTRY_PATTERN.match(body)
            if entry_match:
                function = clean_function_name(entry_match.group('func'))
                kept = [i for i, frame in enumerate(stack) if frame.depth < depth]
                stack = [stack[i] for i in kept]
                open_events = [open_events[i] for i in kept]

                step += 1
                frame = CallFrame(
                    function=function,
                    depth=depth,
                    file=self.config.placeholder_file(function),
                )
                stack.append(frame)
                event = TraceEvent(
                    seq=step,
                    function=function,
                    kind=EventKind.ENTRY,
                    depth=depth,
                    call_stack=tuple(stack),
                    cpu=raw.cpu,
                    task=raw.task,
                )
                open_events.append(event)
                result.events.append(event)
                continue

            if EXIT_PATTERN.match(body):
                duration = parse_duration(raw.duration)
                for event in reversed(open_events):
                    if event.depth >= depth and event.duration_us is None:
                        event.duration_us = duration
                        break
                kept = [i for i, frame in enumerate(stack) if frame.depth < depth]
                stack = [stack[i] for i in kept]
                open_events = [open_events[i] for i in kept]
                continue

            single_match = SINGLE_PATTERN.match(body)
            if single_match:
                function = clean_function_name(single_match.group('func'))
                step += 1
                view = [frame for frame in stack if frame.depth < depth]
                view.append(CallFrame(
                    function=function,
                    depth=depth,
                    file=self.config.placeholder_file(function),
                ))
                result.events.append(TraceEvent(
                    seq=step,
                    function=function,
                    kind=EventKind.CALL,
                    depth=depth,
                    call_stack=tuple(view),
                    cpu=raw.cpu,
                    task=raw.task,
                    duration_us=parse_duration(raw.duration),
                ))
                continue

            result.lines_skipped += 1

        result.events.sort(key=lambda event: event.seq)
        for number, event in enumerate(result.events, 1):
            event.seq = number
        return result
