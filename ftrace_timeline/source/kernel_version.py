"""
Mapping of distribution kernel releases to upstream source series.
"""

import re
from typing import Tuple

FALLBACK_SERIES = '6.12.y'

# Distribution releases whose upstream base differs from their version number.
SERIES_OVERRIDES: Tuple[Tuple[str, str], ...] = (
    (r'^6\.5\.0-.*-generic$', '6.6.y'),
)

MAJOR_MINOR = re.compile(r'^(\d+\.\d+)\.')


def map_upstream_version(kernel_release: str) -> str:
    """
    Map a kernel release string (as printed by `uname -r`) to an upstream series.

    Examples:
        '6.8.0-45-generic' -> '6.8.y'
        '6.5.0-14-generic' -> '6.6.y'
        'garbage'          -> '6.12.y'

    Args:
        kernel_release: Kernel release string

    Returns:
        Upstream series label of the form 'major.minor.y'
    """
    release = (kernel_release or '').strip()
    for pattern, series in SERIES_OVERRIDES:
        if re.match(pattern, release):
            return series
    match = MAJOR_MINOR.match(release)
    if match:
        return f"{match.group(1)}.y"
    return FALLBACK_SERIES
