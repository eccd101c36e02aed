"""
Flow direction classification from function names and call stacks.
"""

from typing import Optional, Sequence, Tuple

from ..core.types import CallFrame, FlowDirection

# Ordered, first match wins. Transmit rules are always tried before receive.
TRANSMIT_PATTERNS: Tuple[str, ...] = ('send', 'transmit', 'xmit', 'output', '__sys_sendto')
RECEIVE_PATTERNS: Tuple[str, ...] = ('recv', 'receive', 'rcv', 'input', '__sys_recvfrom', 'deliver')

DIRECTION_RULES: Tuple[Tuple[FlowDirection, Tuple[str, ...]], ...] = (
    (FlowDirection.TRANSMIT, TRANSMIT_PATTERNS),
    (FlowDirection.RECEIVE, RECEIVE_PATTERNS),
)


class FlowClassifier:
    """Classifies traced functions as transmit, receive or other."""

    @staticmethod
    def match_text(text: str) -> Optional[FlowDirection]:
        """
        Apply the direction rule table to a piece of text.

        Args:
            text: Function name or joined stack names

        Returns:
            First matching direction or None
        """
        lowered = text.lower()
        for direction, patterns in DIRECTION_RULES:
            for pattern in patterns:
                if pattern in lowered:
                    return direction
        return None

    @staticmethod
    def classify(function: str, enclosing_stack: Sequence[CallFrame] = ()) -> FlowDirection:
        """
        Classify a function by its own name, then by its enclosing frames.

        Args:
            function: Traced function name
            enclosing_stack: Outer frames, bottom first

        Returns:
            FlowDirection; OTHER when neither name nor stack matches
        """
        direction = FlowClassifier.match_text(function)
        if direction is not None:
            return direction

        stack_text = ' '.join(frame.function for frame in enclosing_stack)
        direction = FlowClassifier.match_text(stack_text)
        if direction is not None:
            return direction

        return FlowDirection.OTHER


class DirectionTracker:
    """
    Keeps the last non-OTHER direction so a flow reads as one region.

    OTHER classifications display as the most recently seen direction.
    """

    def __init__(self):
        self.current = FlowDirection.OTHER

    def observe(self, classified: FlowDirection) -> FlowDirection:
        if classified is not FlowDirection.OTHER:
            self.current = classified
        return self.current
