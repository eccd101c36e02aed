#!/usr/bin/env python3
"""
Timeline Annotator - resolve traced functions to kernel source definitions
"""

import os
import sys

from ftrace_timeline import ResolverConfig, SourceAnnotator
from ftrace_timeline.storage import default_output_dir


def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(
        description='Resolve timeline functions to their kernel source definitions.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python annotate_timeline.py timeline.json kernel_src/linux-6.8.y
  python annotate_timeline.py timeline.json kernel_src/linux-6.8.y --workers 1
  python annotate_timeline.py timeline.json kernel_src/linux-6.8.y --search-dir net --search-dir include/net
        """
    )
    parser.add_argument('timeline_file', help='Path to the timeline JSON document')
    parser.add_argument('source_root', help='Root of the kernel source tree')
    parser.add_argument('-o', '--output-dir', dest='output_dir', default=None,
                        help='Output directory (default: annotations_<timestamp>)')
    parser.add_argument('--search-dir', dest='search_dirs', action='append', default=None,
                        help='Subdirectory to search, in order (repeatable)')
    parser.add_argument('--timeout', type=float, default=10.0,
                        help='Per-function search timeout in seconds (0 disables)')
    parser.add_argument('--workers', type=int, default=None,
                        help='Worker processes (default: CPU count)')
    args = parser.parse_args(argv)

    config_kwargs = {
        'timeout_seconds': args.timeout or None,
        'num_workers': args.workers,
    }
    if args.search_dirs:
        config_kwargs['search_dirs'] = args.search_dirs
    config = ResolverConfig(**config_kwargs)

    if not os.path.isdir(args.source_root):
        print(f"Error: Source root '{args.source_root}' is not a directory.")
        return 1

    output_dir = args.output_dir or default_output_dir()
    annotator = SourceAnnotator(args.source_root, config=config, output_dir=output_dir)

    try:
        print(f"\nConfiguration:")
        print(f"  Timeline: {args.timeline_file}")
        print(f"  Source root: {args.source_root}")
        print(f"  Search dirs: {', '.join(config.search_dirs)}")
        print(f"  Timeout: {config.timeout_seconds}s")
        print(f"  Output dir: {output_dir}\n")
        result = annotator.annotate_timeline_file(args.timeline_file)
        resolution = result['resolution']
        print(f"\n✓ Annotation complete! {resolution['counts']['resolved']} of "
              f"{resolution['total_functions']} functions resolved")
        if resolution['unresolved']:
            print(f"  Unresolved: {', '.join(resolution['unresolved'])}")
        return 0
    except FileNotFoundError as e:
        print(f"Error: File '{e.filename}' not found.")
        return 1
    except Exception as e:
        print(f"Error: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
