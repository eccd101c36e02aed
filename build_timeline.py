#!/usr/bin/env python3
"""
Timeline Builder - function_graph trace text to timeline JSON
"""

import os
import platform
import sys

from ftrace_timeline import TimelineBuilder
from ftrace_timeline.storage import DocumentStore

EXIT_NO_DATA = 3


def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(
        description='Build a call timeline from ftrace function_graph output.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python build_timeline.py /tmp/kernel_trace_graph.txt
  python build_timeline.py trace.txt -o captures/ --name production_timeline.json
  python build_timeline.py trace.txt --kernel-version 6.8.0-45-generic
        """
    )
    parser.add_argument('input_file', help='Path to the trace text file')
    parser.add_argument('-o', '--output-dir', dest='output_dir', default='.',
                        help='Directory for the timeline document')
    parser.add_argument('--name', default='timeline.json', help='Timeline document file name')
    parser.add_argument('--kernel-version', default=platform.release(),
                        help='Kernel release the trace was captured on (default: running kernel)')
    parser.add_argument('--indent-width', type=int, default=2,
                        help='Indentation characters per nesting level')
    args = parser.parse_args(argv)

    builder = TimelineBuilder(indent_width=args.indent_width)

    try:
        print(f"\nConfiguration:")
        print(f"  Input file: {args.input_file}")
        print(f"  Kernel version: {args.kernel_version}")
        print(f"  Indent width: {args.indent_width}\n")
        timeline = builder.process_trace_file(args.input_file)

        if not timeline.has_data:
            print("\nNo data produced: the trace contained no function_graph entries.")
            return EXIT_NO_DATA

        document = builder.to_document({
            'kernel_version': args.kernel_version,
            'source': os.path.basename(args.input_file),
        })
        stored = DocumentStore(args.output_dir).write_timeline(document, name=args.name)
        print(f"\n✓ Timeline written to {stored.path} ({len(timeline.entries)} entries)")
        return 0
    except FileNotFoundError:
        print(f"Error: File '{args.input_file}' not found.")
        return 1
    except Exception as e:
        print(f"Error: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
