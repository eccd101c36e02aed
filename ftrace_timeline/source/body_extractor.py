"""
Function body extraction by brace balancing.
"""

from typing import List, NamedTuple, Optional, Tuple

from ..core.types import BodyStatus, ResolverConfig


class ExtractedBody(NamedTuple):
    """Body text of a function and how it was obtained."""
    text: str
    line_count: int
    status: BodyStatus


def strip_non_code(line: str, in_comment: bool) -> Tuple[str, bool]:
    """
    Remove comments and string/character literals from one line of C.

    Args:
        line: Source line
        in_comment: Whether a block comment is open at the start of the line

    Returns:
        Tuple of (code_text, in_comment_at_end_of_line)
    """
    code = []
    i = 0
    length = len(line)
    while i < length:
        if in_comment:
            end = line.find('*/', i)
            if end == -1:
                return ''.join(code), True
            in_comment = False
            i = end + 2
            continue
        char = line[i]
        if line.startswith('//', i):
            break
        if line.startswith('/*', i):
            in_comment = True
            i += 2
            continue
        if char in '"\'':
            i += 1
            while i < length and line[i] != char:
                i += 2 if line[i] == '\\' else 1
            i += 1
            continue
        code.append(char)
        i += 1
    return ''.join(code), in_comment


class FunctionBodyExtractor:
    """Extracts a complete function body starting at its definition line."""

    def __init__(self, config: Optional[ResolverConfig] = None):
        self.config = config or ResolverConfig()

    def extract_from_lines(self, lines: List[str], start_line: int) -> ExtractedBody:
        """
        Extract the body from already loaded lines.

        Args:
            lines: File content, one element per line (newlines kept)
            start_line: 1-based definition line

        Returns:
            ExtractedBody; never raises for out-of-range input
        """
        start_idx = start_line - 1
        if start_idx < 0 or start_idx >= len(lines):
            return ExtractedBody('', 0, BodyStatus.FALLBACK)

        balance = 0
        in_comment = False
        opened_at = None
        lookahead_end = min(len(lines), start_idx + self.config.body_lookahead)

        for i in range(start_idx, lookahead_end):
            code, in_comment = strip_non_code(lines[i], in_comment)
            if '{' in code:
                balance = code.count('{') - code.count('}')
                opened_at = i
                break

        if opened_at is None:
            end_idx = min(len(lines), start_idx + self.config.fallback_lines)
            slice_lines = lines[start_idx:end_idx]
            return ExtractedBody(''.join(slice_lines), len(slice_lines), BodyStatus.FALLBACK)

        end_idx = opened_at
        status = BodyStatus.COMPLETE
        if balance > 0:
            status = BodyStatus.OVERRUN
            for i in range(opened_at + 1, len(lines)):
                if i - start_idx >= self.config.max_body_lines:
                    break
                code, in_comment = strip_non_code(lines[i], in_comment)
                balance += code.count('{') - code.count('}')
                end_idx = i
                if balance <= 0:
                    status = BodyStatus.COMPLETE
                    break

        body_lines = lines[start_idx:end_idx + 1]
        return ExtractedBody(''.join(body_lines), len(body_lines), status)

    def extract(self, file_path: str, start_line: int) -> ExtractedBody:
        """
        Extract the body of the function defined at file_path:start_line.

        Args:
            file_path: Path to the source file
            start_line: 1-based definition line

        Returns:
            ExtractedBody; unreadable files give an empty FALLBACK body
        """
        try:
            with open(file_path, 'r', encoding='utf-8', errors='ignore') as f:
                lines = f.readlines()
        except OSError:
            return ExtractedBody('', 0, BodyStatus.FALLBACK)
        return self.extract_from_lines(lines, start_line)
