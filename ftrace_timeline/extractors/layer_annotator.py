"""
Network layer and purpose annotations for resolved functions.
"""

from typing import Dict, Tuple

from ..core.types import FunctionAnnotation, FunctionLocation

LAYER_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (('eth_', 'netif_'), 'Link Layer'),
    (('ip_',), 'Network Layer'),
    (('udp_', 'tcp_'), 'Transport Layer'),
    (('sock_',), 'Socket Layer'),
)
DEFAULT_LAYER = 'Core Network'

# (patterns, purpose, beginner, intermediate, advanced); {layer} is filled in
PURPOSE_RULES: Tuple[Tuple[Tuple[str, ...], str, str, str, str], ...] = (
    (
        ('receive', 'rcv'),
        'Process incoming network packets at {layer}',
        'This function handles incoming network packets in the {layer}. '
        'It processes packet data and forwards it to the next layer.',
        'Receives packets from lower layer, performs {layer} processing '
        'including validation and header parsing.',
        'Core implementation of {layer} packet reception with error handling '
        'and protocol demultiplexing.',
    ),
    (
        ('queue',),
        'Queue packets for processing in {layer}',
        'This function manages packet queuing in the {layer}, ensuring proper '
        'ordering and flow control.',
        'Implements packet queuing mechanisms with buffer management and '
        'congestion control.',
        'Queue management implementation with locking and memory allocation '
        'for {layer}.',
    ),
    (
        ('deliver',),
        'Deliver packets to next layer from {layer}',
        'This function delivers processed packets from {layer} to the '
        'appropriate next layer or application.',
        'Packet delivery mechanism that routes packets based on {layer} '
        'information.',
        'Delivery implementation with protocol lookup and packet forwarding '
        'logic.',
    ),
)
DEFAULT_PURPOSE = (
    'Core {layer} processing function',
    'This function performs essential {layer} operations on network packets.',
    'Implements core {layer} protocol logic and packet manipulation.',
    'Low-level {layer} implementation with performance optimizations.',
)


def _first_match(function: str, rules, default):
    for rule in rules:
        if any(pattern in function for pattern in rule[0]):
            return rule
    return default


class LayerAnnotator:
    """Tags functions with a stack layer and an explanatory purpose."""

    @staticmethod
    def layer_for(function: str) -> str:
        rule = _first_match(function, LAYER_RULES, None)
        return rule[1] if rule else DEFAULT_LAYER

    @staticmethod
    def annotate(location: FunctionLocation) -> FunctionAnnotation:
        """
        Build the annotation record for one function.

        Args:
            location: Resolved or placeholder location of the function

        Returns:
            FunctionAnnotation with layer, purpose and explanations
        """
        function = location.function
        layer = LayerAnnotator.layer_for(function)
        rule = _first_match(function, PURPOSE_RULES, None)
        texts = rule[1:] if rule else DEFAULT_PURPOSE
        purpose, beginner, intermediate, advanced = (
            text.format(layer=layer.lower()) for text in texts
        )

        last_line = location.line + max(location.body_line_count, 1) - 1
        return FunctionAnnotation(
            function=function,
            file=location.file,
            line_range=f"{location.line}-{last_line}",
            layer=layer,
            purpose=purpose,
            beginner=beginner,
            intermediate=intermediate,
            advanced=advanced,
            packet_state_before=f"Packet entering {layer.lower()} processing",
            packet_state_after=f"Packet processed by {layer.lower()}, ready for next stage",
        )

    @classmethod
    def annotate_all(cls, locations: Dict[str, FunctionLocation]) -> Dict[str, FunctionAnnotation]:
        return {name: cls.annotate(location) for name, location in sorted(locations.items())}
