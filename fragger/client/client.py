import sys
import logging
import argparse
from tabulate import tabulate

from ..config import (
    CHUNK_PRESETS,
    DEFAULT_CHUNK_SIZE,
    HEADER_SIZE,
    LOG_LEVEL,
    MAX_CHUNK_SIZE,
    MIN_CHUNK_SIZE,
)
from ..utils.chunker import split
from ..utils.errors import FraggerError
from ..utils.reassembler import describe_fragments, reassemble
from ..utils.units import format_size, parse_size


def chunk_size_arg(text):
    """argparse type for chunk sizes; bare numbers are kilobytes."""
    try:
        return parse_size(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid chunk size: {text!r}")


def clamp_chunk_size(chunk_size):
    """Keep a requested chunk size within the supported range."""
    return min(max(chunk_size, MIN_CHUNK_SIZE), MAX_CHUNK_SIZE)


def split_file(file_path, chunk_size):
    """
    Split a file into a fragment directory next to it.

    Args:
        file_path (str): Path to the file to split
        chunk_size (int): Requested chunk size in bytes
    """
    clamped = clamp_chunk_size(chunk_size)
    if clamped != chunk_size:
        print(f"Chunk size {format_size(chunk_size)} is out of range, using {format_size(clamped)}")

    print(f"Splitting {file_path} into {format_size(clamped)} fragments...")
    result = split(file_path, clamped)

    print(f"Wrote {result['total_fragments']} fragments for {result['original_filename']} "
          f"to {result['directory']}")
    return True


def reassemble_file(directory):
    """Rebuild the original file from a fragment directory."""
    print(f"Reassembling fragments in {directory}...")
    output_path = reassemble(directory)
    print(f"File reassembled successfully to {output_path}")
    return True


def list_fragments(directory):
    """List the fragments of a fragment directory in reassembly order."""
    info = describe_fragments(directory)

    fragment_info = []
    for fragment in [info["metadata_fragment"]] + info["fragments"]:
        fragment_info.append([
            fragment["sequence"],
            fragment["path"].name,
            format_size(fragment["size"]),
            fragment["size"] - HEADER_SIZE,
        ])

    headers = ["Sequence", "Fragment", "Size", "Payload (bytes)"]
    print(tabulate(fragment_info, headers=headers, tablefmt="pretty"))
    print(f"Original file: {info['original_filename']} "
          f"({format_size(info['total_size'])} in {len(info['fragments'])} fragments)")
    return True


def list_presets():
    """Show the named chunk sizes."""
    preset_info = [[name, format_size(size)] for name, size in CHUNK_PRESETS.items()]
    print(tabulate(preset_info, headers=["Preset", "Chunk size"], tablefmt="pretty"))
    return True


def build_parser():
    parser = argparse.ArgumentParser(prog="fragger", description="Split files into fragments and reassemble them")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress details")
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Split command
    split_parser = subparsers.add_parser("split", help="Split a file into fragments")
    split_parser.add_argument("file_path", help="Path to the file to split")
    size_group = split_parser.add_mutually_exclusive_group()
    size_group.add_argument("--chunk-size", type=chunk_size_arg, default=DEFAULT_CHUNK_SIZE,
                            help="Fragment size, e.g. 512KB or 10MB (plain numbers are KB)")
    size_group.add_argument("--preset", choices=sorted(CHUNK_PRESETS), help="Use a named chunk size")

    # Reassemble command
    reassemble_parser = subparsers.add_parser("reassemble", help="Reassemble a fragment directory")
    reassemble_parser.add_argument("directory", help="Directory containing .frag files")

    # List command
    list_parser = subparsers.add_parser("list", help="List the fragments in a directory")
    list_parser.add_argument("directory", help="Directory containing .frag files")

    # Presets command
    subparsers.add_parser("presets", help="Show the chunk size presets")

    return parser


def main(argv=None):
    """Main function to handle command-line arguments."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Execute the appropriate command
    try:
        if args.command == "split":
            chunk_size = CHUNK_PRESETS[args.preset] if args.preset else args.chunk_size
            split_file(args.file_path, chunk_size)
        elif args.command == "reassemble":
            reassemble_file(args.directory)
        elif args.command == "list":
            list_fragments(args.directory)
        elif args.command == "presets":
            list_presets()
        else:
            parser.print_help()
    except FraggerError as e:
        print(f"Error: {e.description}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130
    return 0
