"""
Type definitions for timeline construction and source resolution.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple


class FlowDirection(str, Enum):
    """Coarse direction of a traced function within the packet path."""
    TRANSMIT = 'TRANSMIT'
    RECEIVE = 'RECEIVE'
    OTHER = 'OTHER'


class EventKind(str, Enum):
    """Kind of timeline event."""
    ENTRY = 'entry'  # opens a nested call
    CALL = 'call'    # leaf call with inline duration


class TimelineStatus(str, Enum):
    """Outcome of a parse pass."""
    PRODUCED = 'produced'
    NO_DATA = 'no_data'


class ResolutionStatus(str, Enum):
    """Outcome of a source resolution for one function."""
    RESOLVED = 'resolved'
    UNRESOLVED = 'unresolved'
    TIMED_OUT = 'timed_out'


class BodyStatus(str, Enum):
    """How a function body was obtained."""
    COMPLETE = 'complete'
    FALLBACK = 'fallback'
    OVERRUN = 'overrun'
    NONE = 'none'


class RawTraceLine(NamedTuple):
    """One matched line of function_graph output."""
    cpu: int
    task: str
    duration: str
    indent: str
    body: str


@dataclass(frozen=True)
class CallFrame:
    """A function on the reconstructed call stack."""
    function: str
    depth: int
    file: str
    line: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'function': self.function,
            'file': self.file,
            'line': self.line,
            'depth': self.depth,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CallFrame':
        return cls(
            function=data['function'],
            depth=int(data['depth']),
            file=data.get('file', ''),
            line=int(data.get('line', 1)),
        )


@dataclass(frozen=True)
class BufferState:
    """Synthetic sk_buff metrics attached to a timeline entry."""
    sk_buff_addr: str
    data_len: int
    head: str
    data: str
    tail: str
    end: str
    protocol: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sk_buff_addr': self.sk_buff_addr,
            'data_len': self.data_len,
            'head': self.head,
            'data': self.data,
            'tail': self.tail,
            'end': self.end,
            'protocol': self.protocol,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BufferState':
        return cls(
            sk_buff_addr=data['sk_buff_addr'],
            data_len=int(data['data_len']),
            head=data['head'],
            data=data['data'],
            tail=data['tail'],
            end=data['end'],
            protocol=data['protocol'],
        )


@dataclass(frozen=True)
class SourceInfo:
    """Source location block of a timeline entry."""
    file: str
    line: int
    context: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'file': self.file, 'line': self.line, 'context': self.context}


@dataclass
class TraceEvent:
    """
    A call event as recovered by the parser.

    Mutable until the parse pass ends: an exit line may still assign the
    duration of an open entry.
    """
    seq: int
    function: str
    kind: EventKind
    depth: int
    call_stack: Tuple[CallFrame, ...]
    cpu: int = 0
    task: str = ''
    duration_us: Optional[float] = None


@dataclass(frozen=True)
class TimelineEntry:
    """One step of the assembled timeline."""
    step: int
    timestamp: int
    function: str
    event_type: EventKind
    flow_direction: FlowDirection
    classified_direction: FlowDirection
    call_stack: Tuple[CallFrame, ...]
    buffer_state: BufferState
    duration_us: float
    source_info: SourceInfo
    cpu: int = 0
    task: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'step': self.step,
            'timestamp': self.timestamp,
            'function': self.function,
            'event_type': self.event_type.value,
            'flow_direction': self.flow_direction.value,
            'classified_direction': self.classified_direction.value,
            'call_stack': [frame.to_dict() for frame in self.call_stack],
            'buffer_state': self.buffer_state.to_dict(),
            'duration_us': self.duration_us,
            'source_info': self.source_info.to_dict(),
            'cpu': self.cpu,
            'task': self.task,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TimelineEntry':
        source = data.get('source_info', {})
        return cls(
            step=int(data['step']),
            timestamp=int(data['timestamp']),
            function=data['function'],
            event_type=EventKind(data['event_type']),
            flow_direction=FlowDirection(data['flow_direction']),
            classified_direction=FlowDirection(
                data.get('classified_direction', data['flow_direction'])
            ),
            call_stack=tuple(CallFrame.from_dict(f) for f in data.get('call_stack', [])),
            buffer_state=BufferState.from_dict(data['buffer_state']),
            duration_us=float(data.get('duration_us', 0.0)),
            source_info=SourceInfo(
                file=source.get('file', ''),
                line=int(source.get('line', 1)),
                context=source.get('context', ''),
            ),
            cpu=int(data.get('cpu', 0)),
            task=data.get('task', ''),
        )

    def with_location(self, locations: Dict[str, 'FunctionLocation']) -> 'TimelineEntry':
        """
        Return a copy with file/line fields taken from matching locations.

        Only source_info.file/line and the file/line of call-stack frames whose
        function has a location change; everything else is carried over.
        """
        frames = tuple(
            replace(frame, file=locations[frame.function].file, line=locations[frame.function].line)
            if frame.function in locations else frame
            for frame in self.call_stack
        )
        source_info = self.source_info
        if self.function in locations:
            location = locations[self.function]
            source_info = replace(source_info, file=location.file, line=location.line)
        return replace(self, call_stack=frames, source_info=source_info)


@dataclass(frozen=True)
class FunctionLocation:
    """Resolved (or placeholder) definition site of a traced function."""
    function: str
    file: str
    line: int
    body_text: str
    body_line_count: int
    all_candidate_locations: Tuple[Tuple[str, int], ...] = ()
    status: ResolutionStatus = ResolutionStatus.RESOLVED
    body_status: BodyStatus = BodyStatus.COMPLETE

    @property
    def is_resolved(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED

    def to_dict(self) -> Dict[str, Any]:
        """Function database record."""
        return {
            'file': self.file,
            'line': self.line,
            'source': self.body_text,
            'line_count': self.body_line_count,
            'all_matches': [[path, line] for path, line in self.all_candidate_locations],
            'status': self.status.value,
            'body_status': self.body_status.value,
        }

    @classmethod
    def from_dict(cls, function: str, data: Dict[str, Any]) -> 'FunctionLocation':
        return cls(
            function=function,
            file=data['file'],
            line=int(data['line']),
            body_text=data.get('source', ''),
            body_line_count=int(data.get('line_count', 0)),
            all_candidate_locations=tuple(
                (path, int(line)) for path, line in data.get('all_matches', [])
            ),
            status=ResolutionStatus(data.get('status', ResolutionStatus.RESOLVED.value)),
            body_status=BodyStatus(data.get('body_status', BodyStatus.COMPLETE.value)),
        )


@dataclass
class TimelineSummary:
    """Running counts reported after a parse pass."""
    total_entries: int = 0
    transmit: int = 0
    receive: int = 0
    other: int = 0
    max_stack_depth: int = 0
    lines_read: int = 0
    lines_skipped: int = 0
    total_duration_us: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_entries': self.total_entries,
            'transmit': self.transmit,
            'receive': self.receive,
            'other': self.other,
            'max_stack_depth': self.max_stack_depth,
            'lines_read': self.lines_read,
            'lines_skipped': self.lines_skipped,
            'total_duration_us': self.total_duration_us,
        }


@dataclass
class Timeline:
    """Assembled timeline plus its summary."""
    entries: List[TimelineEntry] = field(default_factory=list)
    summary: TimelineSummary = field(default_factory=TimelineSummary)
    status: TimelineStatus = TimelineStatus.NO_DATA

    @property
    def has_data(self) -> bool:
        return self.status is TimelineStatus.PRODUCED

    def function_names(self) -> List[str]:
        """Distinct function names in order of first appearance."""
        return list(dict.fromkeys(entry.function for entry in self.entries))


@dataclass(frozen=True)
class FunctionAnnotation:
    """Educational annotation for one resolved function."""
    function: str
    file: str
    line_range: str
    layer: str
    purpose: str
    beginner: str
    intermediate: str
    advanced: str
    packet_state_before: str
    packet_state_after: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'basic': {
                'file': self.file,
                'line_range': self.line_range,
                'layer': self.layer,
                'purpose': self.purpose,
            },
            'explanations': {
                'beginner': self.beginner,
                'intermediate': self.intermediate,
                'advanced': self.advanced,
            },
            'packet_flow': {
                'packet_state_before': self.packet_state_before,
                'packet_state_after': self.packet_state_after,
            },
        }


class TimelineConfig:
    """Configuration for trace parsing and timeline assembly."""

    def __init__(
        self,
        indent_width: int = 2,
        timestamp_scale: int = 1000,
        placeholder_dir: str = 'net/core'
    ):
        """
        Initialize timeline configuration.

        Args:
            indent_width: Characters of indentation per nesting level in
                          function_graph output. Default: 2
            timestamp_scale: Factor applied to the step counter to obtain the
                             synthetic timestamp. Default: 1000
            placeholder_dir: Directory used for placeholder source files
                             before resolution. Default: 'net/core'
        """
        if indent_width < 1:
            raise ValueError(f"indent_width must be positive, got {indent_width}")
        self.indent_width = indent_width
        self.timestamp_scale = timestamp_scale
        self.placeholder_dir = placeholder_dir.rstrip('/')

    def placeholder_file(self, function: str) -> str:
        return f"{self.placeholder_dir}/{function}.c"


class ResolverConfig:
    """Configuration for source resolution and body extraction."""

    def __init__(
        self,
        search_dirs: Sequence[str] = ('net', 'include/net', 'include/linux'),
        extensions: Sequence[str] = ('.c', '.h'),
        context_lines: int = 3,
        timeout_seconds: Optional[float] = 10.0,
        num_workers: Optional[int] = None,
        body_lookahead: int = 5,
        fallback_lines: int = 30,
        max_body_lines: int = 200
    ):
        """
        Initialize resolver configuration.

        Args:
            search_dirs: Subdirectories of the source root searched, in order.
            extensions: File suffixes considered source files.
            context_lines: Lines after a hit inspected during verification.
            timeout_seconds: Per-function search deadline. None disables it.
            num_workers: Worker processes for batch resolution
                         (default: CPU count).
            body_lookahead: Lines scanned for the opening brace of a body.
            fallback_lines: Size of the slice returned when no body opens.
            max_body_lines: Hard limit on lines scanned while balancing braces.
        """
        self.search_dirs = tuple(search_dirs)
        self.extensions = tuple(extensions)
        self.context_lines = context_lines
        self.timeout_seconds = timeout_seconds
        self.num_workers = num_workers
        self.body_lookahead = body_lookahead
        self.fallback_lines = fallback_lines
        self.max_body_lines = max_body_lines

    def to_dict(self) -> Dict[str, Any]:
        """Plain form used to ship the config to worker processes."""
        return {
            'search_dirs': list(self.search_dirs),
            'extensions': list(self.extensions),
            'context_lines': self.context_lines,
            'timeout_seconds': self.timeout_seconds,
            'num_workers': self.num_workers,
            'body_lookahead': self.body_lookahead,
            'fallback_lines': self.fallback_lines,
            'max_body_lines': self.max_body_lines,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ResolverConfig':
        return cls(**data)
