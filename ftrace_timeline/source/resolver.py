"""
Source location resolution for traced kernel functions.

A function name shows up many times in a kernel tree: in calls, prototypes,
comments, EXPORT_SYMBOL lines and inside longer identifiers. The resolver
streams the search directories file by file, keeps whole-word hits and
verifies each one against a short window of following lines.
"""

import os
import re
import time
from functools import lru_cache
from typing import Iterator, List, Optional, Tuple

from ..core.types import BodyStatus, FunctionLocation, ResolutionStatus, ResolverConfig
from .body_extractor import FunctionBodyExtractor, strip_non_code

PLACEHOLDER_DIR = 'unknown'
PLACEHOLDER_LINE = 1000

# Type words, storage classes, attributes and pointer stars only.
DECLARATION_PREFIX = re.compile(r'^[A-Za-z_\s\*][\w\s\*]*$')
STATEMENT_KEYWORDS = frozenset({
    'return', 'if', 'else', 'while', 'for', 'do', 'switch', 'case', 'goto', 'sizeof',
})
CLONE_SUFFIX = re.compile(r'\.(?:isra|constprop|part|cold|llvm|lto_priv)(?:\.\d+)*.*$')

DEADLINE_CHECK_INTERVAL = 512  # lines
FILE_CACHE_SIZE = 256


class ResolutionTimeout(Exception):
    """Raised when a single search exceeds its deadline."""


def lookup_symbol(function: str) -> str:
    """Base symbol of a traced name ('ip_rcv_core.isra.0' -> 'ip_rcv_core')."""
    return CLONE_SUFFIX.sub('', function)


def _word_pattern(symbol: str) -> re.Pattern:
    return re.compile(rf'(?<![\w$]){re.escape(symbol)}(?![\w$])')


def _call_pattern(symbol: str) -> re.Pattern:
    return re.compile(rf'(?<![\w$]){re.escape(symbol)}\s*\(')


def _is_code_position(line: str, pos: int, in_comment: bool = False) -> bool:
    """False when pos falls inside a comment or a string literal."""
    code, in_comment = strip_non_code(line[:pos] + '\x00', in_comment)
    return not in_comment and '\x00' in code


class SourceLocationResolver:
    """
    Finds the definition site of a function inside a source tree.

    Args:
        source_root: Root of the source tree (e.g. kernel_src/linux-6.8.y)
        config: ResolverConfig instance
    """

    def __init__(self, source_root: str, config: Optional[ResolverConfig] = None):
        self.source_root = os.path.abspath(source_root)
        self.config = config or ResolverConfig()
        self.body_extractor = FunctionBodyExtractor(self.config)
        self._read_source = lru_cache(maxsize=FILE_CACHE_SIZE)(self._load_source)

    @staticmethod
    def _load_source(path: str) -> Optional[str]:
        """File text, or None when the file cannot be read."""
        try:
            with open(path, 'r', encoding='utf-8', errors='ignore') as f:
                return f.read()
        except OSError:
            return None

    def iter_source_files(self) -> Iterator[Tuple[str, str]]:
        """
        Yield (path, relative_path) of source files in search order.

        Directories are visited in configured order, each walked in sorted
        order. Files reachable from more than one search directory are
        yielded once.
        """
        seen = set()
        for search_dir in self.config.search_dirs:
            base = os.path.join(self.source_root, search_dir)
            if not os.path.isdir(base):
                continue
            for dirpath, dirnames, filenames in os.walk(base):
                dirnames.sort()
                for filename in sorted(filenames):
                    if not filename.endswith(self.config.extensions):
                        continue
                    path = os.path.join(dirpath, filename)
                    real = os.path.realpath(path)
                    if real in seen:
                        continue
                    seen.add(real)
                    yield path, os.path.relpath(path, self.source_root).replace(os.sep, '/')

    def is_definition(
        self,
        lines: List[str],
        index: int,
        symbol: str,
        in_comment: bool = False
    ) -> bool:
        """
        Decide whether lines[index] opens the definition of symbol.

        Args:
            lines: File content
            index: 0-based line index of a whole-word hit
            symbol: Function name searched for
            in_comment: Whether a block comment is open at the start of the line

        Returns:
            True only for a body-carrying definition
        """
        if index < 0 or index >= len(lines):
            return False
        line = lines[index].rstrip('\r\n')
        stripped = line.strip()

        if in_comment or stripped.startswith(('//', '/*', '*')):
            return False

        match = _call_pattern(symbol).search(line)
        if not match:
            return False
        if not _is_code_position(line, match.start(), in_comment):
            return False

        prefix = line[:match.start()]
        if prefix.strip():
            if not DECLARATION_PREFIX.match(prefix):
                return False
            if STATEMENT_KEYWORDS.intersection(prefix.replace('*', ' ').split()):
                return False
        elif line[:1].isspace():
            # indented bare name(...) is a call or a loop macro
            return False

        if stripped.endswith(';') and '{' not in stripped:
            return False

        window_end = min(len(lines), index + 1 + self.config.context_lines)
        in_comment = False
        code_parts = []
        for i in range(index, window_end):
            text = lines[i] if i != index else line[match.end() - 1:]
            code, in_comment = strip_non_code(text.rstrip('\r\n'), in_comment)
            code_parts.append(code)
        window = '\n'.join(code_parts)

        depth = 0
        close = -1
        for pos, char in enumerate(window):
            if char == '(':
                depth += 1
            elif char == ')':
                depth -= 1
                if depth == 0:
                    close = pos
                    break
        if close == -1:
            return False

        rest = window[close + 1:]
        brace = rest.find('{')
        semicolon = rest.find(';')
        if brace == -1:
            return False
        if semicolon != -1 and semicolon < brace:
            return False
        return True

    def _scan(self, symbol: str, deadline: Optional[float]):
        """
        Stream accepted candidates as (path, relative_path, line, lines).

        Raises:
            ResolutionTimeout: when the deadline passes mid-scan
        """
        word = _word_pattern(symbol)
        for path, rel_path in self.iter_source_files():
            if deadline is not None and time.monotonic() > deadline:
                raise ResolutionTimeout(symbol)
            text = self._read_source(path)
            if text is None or symbol not in text:
                continue

            lines = text.splitlines(keepends=True)
            in_comment = False
            for index, line in enumerate(lines):
                if deadline is not None and index % DEADLINE_CHECK_INTERVAL == 0 \
                        and time.monotonic() > deadline:
                    raise ResolutionTimeout(symbol)
                starts_in_comment = in_comment
                _, in_comment = strip_non_code(line.rstrip('\r\n'), in_comment)
                if not word.search(line):
                    continue
                if self.is_definition(lines, index, symbol, starts_in_comment):
                    yield path, rel_path, index + 1, lines

    def resolve(self, function: str) -> FunctionLocation:
        """
        Resolve one function to its definition and body.

        Args:
            function: Traced function name

        Returns:
            FunctionLocation with status RESOLVED, UNRESOLVED or TIMED_OUT
        """
        symbol = lookup_symbol(function)
        deadline = None
        if self.config.timeout_seconds is not None:
            deadline = time.monotonic() + self.config.timeout_seconds

        first = None
        candidates = []
        try:
            for path, rel_path, line, lines in self._scan(symbol, deadline):
                if first is None:
                    first = (rel_path, line, lines)
                candidates.append((rel_path, line))
        except ResolutionTimeout:
            return self.placeholder(function, ResolutionStatus.TIMED_OUT)

        if first is None:
            return self.placeholder(function, ResolutionStatus.UNRESOLVED)

        rel_path, line, lines = first
        body = self.body_extractor.extract_from_lines(lines, line)
        return FunctionLocation(
            function=function,
            file=rel_path,
            line=line,
            body_text=body.text,
            body_line_count=body.line_count,
            all_candidate_locations=tuple(candidates),
            status=ResolutionStatus.RESOLVED,
            body_status=body.status,
        )

    @staticmethod
    def placeholder(function: str, status: ResolutionStatus) -> FunctionLocation:
        """Location recorded when no definition could be established."""
        if status is ResolutionStatus.TIMED_OUT:
            reason = '// Search timed out before a definition was found\n'
        else:
            reason = '// This may be an inline function or macro\n'
        return FunctionLocation(
            function=function,
            file=f"{PLACEHOLDER_DIR}/{function}.c",
            line=PLACEHOLDER_LINE,
            body_text=f"// Function {function} not found in kernel source\n{reason}",
            body_line_count=2,
            all_candidate_locations=(),
            status=status,
            body_status=BodyStatus.NONE,
        )
