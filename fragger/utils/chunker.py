import os
import math
import stat
import logging
from pathlib import Path

from ..config import (
    DATA_FRAGMENT_TEMPLATE,
    DEFAULT_CHUNK_SIZE,
    FRAGMENT_EXTENSION,
    HEADER_SIZE,
    MAX_CHUNK_SIZE,
    MAX_FILE_SIZE,
    METADATA_FRAGMENT_NAME,
    METADATA_SEQUENCE,
    MIN_CHUNK_SIZE,
)
from .errors import (
    ChunkTooLarge,
    ChunkTooSmall,
    CouldNotCreateFile,
    CouldNotReadFile,
    CouldNotWriteFile,
    DirCreateFailed,
    InvalidUtf8,
    NoName,
    NoParent,
    NullPath,
    SourceSmallerThanChunk,
    SourceTooLarge,
)
from .header import MAX_SEQUENCE, encode_sequence
from .reassembler import reassemble

logger = logging.getLogger(__name__)


def validate_sizes(chunk_size, file_size):
    """
    Check a chunk size against the limits and the size of the source file.

    A non-empty source has to be strictly larger than the chunk size. An
    empty source is accepted and splits into the metadata fragment alone.

    Raises:
        ChunkTooLarge, ChunkTooSmall, SourceSmallerThanChunk, SourceTooLarge
    """
    if chunk_size > MAX_CHUNK_SIZE:
        raise ChunkTooLarge(chunk_size, MAX_CHUNK_SIZE)
    if chunk_size < MIN_CHUNK_SIZE:
        raise ChunkTooSmall(chunk_size, MIN_CHUNK_SIZE)
    if 0 < file_size <= chunk_size:
        raise SourceSmallerThanChunk(file_size, chunk_size)
    if file_size > MAX_FILE_SIZE:
        raise SourceTooLarge(file_size, MAX_FILE_SIZE)

    # Sequence numbers have to fit in the header
    payload_size = chunk_size - HEADER_SIZE
    if math.ceil(file_size / payload_size) > MAX_SEQUENCE:
        raise SourceTooLarge(file_size, payload_size * MAX_SEQUENCE)


def fragment_directory_for(file_path):
    """Directory a split of ``file_path`` writes into: ``<parent>/<stem>``."""
    path = Path(file_path)
    return path.parent / path.stem


def _write_fragment(fragment_path, sequence, payload):
    try:
        fragment = open(fragment_path, 'wb')
    except OSError as e:
        raise CouldNotCreateFile(fragment_path) from e

    try:
        with fragment:
            fragment.write(encode_sequence(sequence))
            fragment.write(payload)
    except OSError as e:
        raise CouldNotWriteFile(fragment_path) from e


def _remove_stale_fragments(output_dir):
    """Delete fragments left in ``output_dir`` by an earlier split."""
    try:
        with os.scandir(output_dir) as entries:
            stale = [
                Path(entry.path) for entry in entries
                if not entry.is_dir() and Path(entry.name).suffix == FRAGMENT_EXTENSION
            ]
    except OSError as e:
        raise DirCreateFailed(output_dir) from e

    for fragment_path in stale:
        try:
            fragment_path.unlink()
        except OSError as e:
            raise CouldNotWriteFile(fragment_path) from e

    if stale:
        logger.info("Removed %d fragments of an earlier split from %s", len(stale), output_dir)


class Fragmenter:
    """
    Class responsible for splitting files into fragment files and
    reassembling them.
    """
    def __init__(self, chunk_size=DEFAULT_CHUNK_SIZE):
        """Initialize the fragmenter with a chunk size in bytes, header included."""
        self.chunk_size = chunk_size

    def split_file(self, file_path):
        """
        Split a file into a directory of fragment files.

        The directory is created next to the file and named after its stem.
        It receives ``filedata.frag`` holding the original file name and one
        ``split_file_<i>.frag`` per chunk of content.

        Args:
            file_path (str | Path): Path to the file to be split

        Returns:
            dict: A dictionary containing:
                - 'directory': the fragment directory
                - 'original_filename': base name stored in the metadata fragment
                - 'metadata_fragment': path of the metadata fragment
                - 'total_fragments': number of data fragments written
                - 'size': size of the source file in bytes

        Raises:
            FraggerError: on invalid sizes or paths, or when any file
                operation fails. Fragments written before the failure are
                left in place.
        """
        if not file_path:
            raise NullPath(file_path)
        path = Path(file_path)

        try:
            file_stat = os.stat(path)
        except OSError as e:
            raise CouldNotReadFile(path) from e
        if not stat.S_ISREG(file_stat.st_mode):
            raise CouldNotReadFile(path)

        file_size = file_stat.st_size
        validate_sizes(self.chunk_size, file_size)

        if path.parent == path:
            raise NoParent(path)
        if not path.name or not path.stem:
            raise NoName(path)
        try:
            name_bytes = path.name.encode('utf-8')
        except UnicodeEncodeError as e:
            raise InvalidUtf8(path) from e

        output_dir = fragment_directory_for(path)
        try:
            os.makedirs(output_dir, exist_ok=True)
        except OSError as e:
            raise DirCreateFailed(output_dir) from e
        _remove_stale_fragments(output_dir)

        # The metadata fragment's header is simply [0, 0, 0, 0]
        metadata_path = output_dir / METADATA_FRAGMENT_NAME
        _write_fragment(metadata_path, METADATA_SEQUENCE, name_bytes)

        total_fragments = 0
        buffer = bytearray(self.chunk_size - HEADER_SIZE)
        view = memoryview(buffer)

        try:
            source = open(path, 'rb')
        except OSError as e:
            raise CouldNotReadFile(path) from e

        with source:
            sequence = 1
            while True:
                try:
                    bytes_read = source.readinto(buffer)
                except OSError as e:
                    raise CouldNotReadFile(path) from e
                if not bytes_read:
                    break

                fragment_path = output_dir / DATA_FRAGMENT_TEMPLATE.format(sequence)
                _write_fragment(fragment_path, sequence, view[:bytes_read])
                logger.debug("Wrote %s (%d payload bytes)", fragment_path, bytes_read)

                total_fragments += 1
                sequence += 1

        logger.info(
            "Split %s (%d bytes) into %d fragments in %s",
            path, file_size, total_fragments, output_dir,
        )
        return {
            'directory': output_dir,
            'original_filename': path.name,
            'metadata_fragment': metadata_path,
            'total_fragments': total_fragments,
            'size': file_size,
        }

    def reassemble_file(self, fragment_dir):
        """
        Reassemble the file stored in a fragment directory.

        Returns:
            Path: where the reassembled file was written
        """
        return reassemble(fragment_dir)


def split(source_path, chunk_size):
    """Split ``source_path`` into fragments of at most ``chunk_size`` bytes."""
    return Fragmenter(chunk_size).split_file(source_path)
