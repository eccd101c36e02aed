"""
Deterministic synthetic sk_buff state for timeline entries.

The values are illustrative only. They are derived from the function name,
the display direction and the step number, never from captured memory.
"""

from typing import Tuple

from ..core.types import BufferState, FlowDirection

BASE_ADDRESS = 0xffff888100000000
STEP_STRIDE = 0x1000
HEAD_OFFSET = 0x100
DATA_OFFSET = 0x200
END_OFFSET = 0x800

MTU_SIZE = 1500
RX_ALLOC_SIZE = 1024
MIN_PAYLOAD = 64

PROTOCOL_RULES: Tuple[Tuple[str, str], ...] = (
    ('tcp', 'TCP'),
    ('udp', 'UDP'),
    ('icmp', 'ICMP'),
    ('inet', 'UDP'),
)
DEFAULT_PROTOCOL = 'IP'


class StateSynthesizer:
    """Builds BufferState records as a pure function of its inputs."""

    @staticmethod
    def payload_size(function: str, direction: FlowDirection, step: int) -> int:
        if 'alloc' in function:
            return MTU_SIZE if direction is FlowDirection.TRANSMIT else RX_ALLOC_SIZE
        if 'free' in function:
            return 0
        if direction is FlowDirection.TRANSMIT:
            # headers are stripped as the packet moves down
            return max(MIN_PAYLOAD, MTU_SIZE - step * 50)
        return min(MTU_SIZE, MIN_PAYLOAD + step * 30)

    @staticmethod
    def protocol_for(function: str) -> str:
        lowered = function.lower()
        for pattern, protocol in PROTOCOL_RULES:
            if pattern in lowered:
                return protocol
        return DEFAULT_PROTOCOL

    @classmethod
    def synthesize(cls, function: str, direction: FlowDirection, step: int) -> BufferState:
        """
        Generate the buffer state for one timeline step.

        Args:
            function: Traced function name
            direction: Display direction of the entry
            step: 1-based step number

        Returns:
            BufferState with hex-formatted addresses
        """
        base = BASE_ADDRESS + step * STEP_STRIDE
        size = cls.payload_size(function, direction, step)
        return BufferState(
            sk_buff_addr=f"0x{base:x}",
            data_len=size,
            head=f"0x{base + HEAD_OFFSET:x}",
            data=f"0x{base + DATA_OFFSET:x}",
            tail=f"0x{base + DATA_OFFSET + size:x}",
            end=f"0x{base + END_OFFSET:x}",
            protocol=cls.protocol_for(function),
        )
