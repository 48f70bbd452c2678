"""
Fragment scanning and reassembly.

A fragment directory is discovered by scanning: every non-directory entry
ending in ``.frag`` is a fragment, whatever its name. Only the sequence
number in its header decides where it goes.
"""

import os
import logging
from pathlib import Path

from ..config import (
    FRAGMENT_EXTENSION,
    HEADER_SIZE,
    MAX_BUFFER_SIZE,
    METADATA_SEQUENCE,
)
from .errors import (
    CouldNotCreateFile,
    CouldNotReadDir,
    CouldNotReadFile,
    CouldNotWriteFile,
    InvalidFileName,
    InvalidUtf8,
    MissingMetadata,
    NoFragments,
    NullPath,
    TruncatedFragment,
)
from .header import decode_sequence

logger = logging.getLogger(__name__)


def read_sequence(fragment_path):
    """
    Read the sequence number of a fragment without touching its payload.

    Raises:
        CouldNotReadFile: if the fragment cannot be opened
        TruncatedFragment: if it is shorter than the header
    """
    try:
        with open(fragment_path, 'rb') as f:
            header = f.read(HEADER_SIZE)
    except OSError as e:
        raise CouldNotReadFile(fragment_path) from e

    if len(header) < HEADER_SIZE:
        raise TruncatedFragment(fragment_path)
    return decode_sequence(header)


def scan_fragments(directory):
    """
    Find the fragments in a directory and order them.

    Entries that are directories or lack the ``.frag`` extension are
    ignored. Entries that cannot be inspected are skipped and reported once.

    Args:
        directory (str | Path): Directory to scan

    Returns:
        list: Dictionaries with 'path', 'sequence' and 'size' (bytes on disk),
        sorted by sequence number, ties broken by file name
    """
    directory = Path(directory)
    fragments = []
    skipped = 0

    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                try:
                    if entry.is_dir() or Path(entry.name).suffix != FRAGMENT_EXTENSION:
                        continue
                    size = entry.stat().st_size
                except OSError:
                    skipped += 1
                    continue

                path = Path(entry.path)
                fragments.append({
                    'path': path,
                    'sequence': read_sequence(path),
                    'size': size,
                })
    except OSError as e:
        raise CouldNotReadDir(directory) from e

    if skipped:
        logger.warning("Skipped %d unreadable entries in %s", skipped, directory)

    fragments.sort(key=lambda f: (f['sequence'], f['path'].name))
    return fragments


def _separate_metadata(fragments, directory):
    """Split ordered fragments into the metadata fragment and data fragments."""
    if not fragments:
        raise NoFragments(directory)
    if fragments[0]['sequence'] != METADATA_SEQUENCE:
        raise MissingMetadata(directory)

    unique = []
    for fragment in fragments:
        if unique and unique[-1]['sequence'] == fragment['sequence']:
            logger.warning(
                "Ignoring %s: sequence number %d already taken by %s",
                fragment['path'], fragment['sequence'], unique[-1]['path'],
            )
            continue
        unique.append(fragment)

    return unique[0], unique[1:]


def _is_plain_name(name):
    if not name or name in ('.', '..') or '\x00' in name:
        return False
    separators = [sep for sep in ('/', os.sep, os.altsep) if sep]
    return not any(sep in name for sep in separators)


def read_original_name(fragment_path):
    """
    Recover the original file name from the metadata fragment.

    Raises:
        CouldNotReadFile, TruncatedFragment, InvalidUtf8, InvalidFileName
    """
    try:
        with open(fragment_path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise CouldNotReadFile(fragment_path) from e

    if len(data) < HEADER_SIZE:
        raise TruncatedFragment(fragment_path)

    try:
        name = data[HEADER_SIZE:].decode('utf-8')
    except UnicodeDecodeError as e:
        raise InvalidUtf8(fragment_path) from e

    if not _is_plain_name(name):
        raise InvalidFileName(name)
    return name


def describe_fragments(directory):
    """
    Inspect a fragment directory without writing anything.

    Returns:
        dict: A dictionary containing:
            - 'directory': the scanned directory
            - 'original_filename': name recovered from the metadata fragment
            - 'metadata_fragment': the metadata fragment entry
            - 'fragments': ordered data fragment entries (see scan_fragments)
            - 'total_size': size the reassembled file will have
    """
    if not directory:
        raise NullPath(directory)
    directory = Path(directory)

    metadata, data_fragments = _separate_metadata(scan_fragments(directory), directory)
    return {
        'directory': directory,
        'original_filename': read_original_name(metadata['path']),
        'metadata_fragment': metadata,
        'fragments': data_fragments,
        'total_size': sum(f['size'] - HEADER_SIZE for f in data_fragments),
    }


def _append_payload(fragment_path, output, view):
    """Copy one fragment's payload into ``output`` and return its length."""
    try:
        fragment = open(fragment_path, 'rb')
    except OSError as e:
        raise CouldNotReadFile(fragment_path) from e

    written = 0
    with fragment:
        try:
            header = fragment.read(HEADER_SIZE)
        except OSError as e:
            raise CouldNotReadFile(fragment_path) from e
        if len(header) < HEADER_SIZE:
            raise TruncatedFragment(fragment_path)

        # Only the payload is left, however many reads it takes
        while True:
            try:
                bytes_read = fragment.readinto(view)
            except OSError as e:
                raise CouldNotReadFile(fragment_path) from e
            if not bytes_read:
                break
            output.write(view[:bytes_read])
            written += bytes_read

    return written


def reassemble(fragment_dir):
    """
    Rebuild the original file from a fragment directory.

    The file is written next to the fragment directory under the name kept
    in the metadata fragment, replacing any file already there. The fragment
    directory itself is left untouched.

    Args:
        fragment_dir (str | Path): Directory produced by a split

    Returns:
        Path: The reassembled file

    Raises:
        FraggerError: if the directory cannot be scanned, the metadata is
            unusable, or any read or write fails
    """
    if not fragment_dir:
        raise NullPath(fragment_dir)
    directory = Path(fragment_dir).resolve()
    if directory.parent == directory:
        raise NullPath(directory)

    metadata, data_fragments = _separate_metadata(scan_fragments(directory), directory)
    output_path = directory.parent / read_original_name(metadata['path'])

    try:
        output = open(output_path, 'wb')
    except OSError as e:
        raise CouldNotCreateFile(output_path) from e

    total = 0
    try:
        with output:
            # Fail early if the file cannot be written to
            output.write(b"")
            output.flush()

            if data_fragments:
                # One buffer for every fragment, sized from the first one
                buffer_size = min(max(data_fragments[0]['size'], HEADER_SIZE), MAX_BUFFER_SIZE)
                view = memoryview(bytearray(buffer_size))
                for fragment in data_fragments:
                    total += _append_payload(fragment['path'], output, view)
    except OSError as e:
        raise CouldNotWriteFile(output_path) from e

    logger.info(
        "Reassembled %s (%d bytes) from %d fragments in %s",
        output_path, total, len(data_fragments), directory,
    )
    return output_path
