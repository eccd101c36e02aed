"""
Parallel source resolution for the distinct functions of a timeline.
"""

import math
import multiprocessing as mp
import os
import time
from multiprocessing import Pool
from typing import Callable, Dict, Iterable, Optional, Tuple

from ..core.types import FunctionLocation, ResolutionStatus, ResolverConfig
from ..source import SourceLocationResolver

# Extra seconds the collector waits beyond the workers' own deadlines.
GRACE_SECONDS = 5.0


def _resolve_single(args: Tuple[str, str, dict]) -> FunctionLocation:
    """
    Resolve a single function independently. Designed to run in a worker process.

    Args:
        args: Tuple of (function, source_root, config_dict)

    Returns:
        FunctionLocation for the function
    """
    function, source_root, config_dict = args
    resolver = SourceLocationResolver(source_root, ResolverConfig.from_dict(config_dict))
    return resolver.resolve(function)


class ParallelResolver:
    """Resolve many functions against a read-only source tree."""

    def __init__(self, source_root: str, config: Optional[ResolverConfig] = None):
        """
        Initialize parallel resolver.

        Args:
            source_root: Root of the source tree
            config: ResolverConfig instance (num_workers defaults to CPU count)
        """
        self.source_root = source_root
        self.config = config or ResolverConfig()
        self.num_workers = self.config.num_workers or os.cpu_count() or 4
        self.config_dict = self.config.to_dict()

    def resolve_all(
        self,
        functions: Iterable[str],
        progress_callback: Optional[Callable[[int, int, FunctionLocation], None]] = None
    ) -> Dict[str, FunctionLocation]:
        """
        Resolve every distinct function name.

        Args:
            functions: Function names; duplicates are resolved once
            progress_callback: Optional callback(completed, total, location)

        Returns:
            Mapping of function name -> FunctionLocation, built after all
            workers have finished
        """
        names = list(dict.fromkeys(functions))

        if len(names) <= 1 or self.num_workers <= 1:
            return self._resolve_sequential(names, progress_callback)

        work_items = [(name, self.source_root, self.config_dict) for name in names]
        effective_workers = min(self.num_workers, len(names))
        batch_deadline = None
        if self.config.timeout_seconds is not None:
            rounds = math.ceil(len(names) / effective_workers)
            batch_deadline = time.monotonic() + rounds * self.config.timeout_seconds + GRACE_SECONDS

        results = []
        with Pool(processes=effective_workers) as pool:
            pending = [(name, pool.apply_async(_resolve_single, (item,)))
                       for name, item in zip(names, work_items)]
            for completed, (name, async_result) in enumerate(pending, 1):
                location = self._collect(name, async_result, batch_deadline)
                results.append((name, location))
                if progress_callback:
                    progress_callback(completed, len(names), location)

        return dict(results)

    def _collect(self, name, async_result, batch_deadline) -> FunctionLocation:
        timeout = None
        if batch_deadline is not None:
            timeout = max(0.0, batch_deadline - time.monotonic())
        try:
            return async_result.get(timeout=timeout)
        except mp.TimeoutError:
            return SourceLocationResolver.placeholder(name, ResolutionStatus.TIMED_OUT)
        except Exception as e:
            print(f"    Resolution error for {name}: {e}")
            return SourceLocationResolver.placeholder(name, ResolutionStatus.UNRESOLVED)

    def _resolve_sequential(self, names, progress_callback=None) -> Dict[str, FunctionLocation]:
        """
        Fallback sequential resolution for a single function or single worker.
        """
        resolver = SourceLocationResolver(self.source_root, self.config)
        results = {}
        for completed, name in enumerate(names, 1):
            try:
                location = resolver.resolve(name)
            except Exception as e:
                print(f"    Resolution error for {name}: {e}")
                location = SourceLocationResolver.placeholder(name, ResolutionStatus.UNRESOLVED)
            results[name] = location
            if progress_callback:
                progress_callback(completed, len(names), location)
        return results
