"""
fragger/utils/errors.py

Exception hierarchy for the fragment splitter and reassembler.

Every failure the core can run into maps onto one of these classes. Callers
catch ``FraggerError`` and decide how to present it; ``description`` holds a
message suitable for showing to a user.
"""

from .units import format_size


class FraggerError(Exception):
    """Base class for all fragger exceptions."""

    description = "An unexpected error occurred."

    def __str__(self):
        return self.description


# Validation


class ValidationError(FraggerError):
    """Chunk size or source size is outside the accepted range."""

    def __init__(self, size, limit):
        super().__init__(size, limit)
        self.size = size
        self.limit = limit


class ChunkTooLarge(ValidationError):
    @property
    def description(self):
        return (f"Chunk size is too big. Max size: {format_size(self.limit)}. "
                f"Actual size: {format_size(self.size)}.")


class ChunkTooSmall(ValidationError):
    @property
    def description(self):
        return (f"Chunk size is too small. Min size: {format_size(self.limit)}. "
                f"Actual size: {format_size(self.size)}.")


class SourceSmallerThanChunk(ValidationError):
    @property
    def description(self):
        return (f"The selected file ({format_size(self.size)}) is not larger than "
                f"the chunk size ({format_size(self.limit)}). Please select a "
                "larger file or a smaller chunk size and try again.")


class SourceTooLarge(ValidationError):
    @property
    def description(self):
        return (f"The selected file is too big ({format_size(self.size)}). "
                f"Max size: {format_size(self.limit)}.")


# Paths


class FragmentPathError(FraggerError):
    """A path is missing a component the operation needs."""

    def __init__(self, path=None):
        super().__init__(path)
        self.path = path


class NullPath(FragmentPathError):
    description = "No path was selected. Please select a path and try again."


class NoParent(FragmentPathError):
    description = ("Selected file or folder has no parent path. "
                   "Filesystem roots cannot be split or reassembled.")


class NoName(FragmentPathError):
    @property
    def description(self):
        return f"The selected file has no name: {self.path}"


class InvalidFileName(FragmentPathError):
    @property
    def description(self):
        return (f"Recovered file name {self.path!r} is not a plain file name. "
                "The metadata fragment may have been tampered with.")


# I/O


class FragmentIOError(FraggerError):
    """An operating system call on ``path`` failed.

    The original ``OSError`` is chained as ``__cause__``.
    """

    def __init__(self, path):
        super().__init__(path)
        self.path = path


class DirCreateFailed(FragmentIOError):
    @property
    def description(self):
        return f"Could not create directory {self.path}."


class CouldNotCreateFile(FragmentIOError):
    @property
    def description(self):
        return f"Could not create file {self.path}."


class CouldNotWriteFile(FragmentIOError):
    @property
    def description(self):
        return f"Could not write to file {self.path}. Check permissions and try again."


class CouldNotReadFile(FragmentIOError):
    @property
    def description(self):
        return f"Could not read file {self.path}. Check permissions and try again."


class CouldNotReadDir(FragmentIOError):
    @property
    def description(self):
        return f"Could not read dir {self.path}. Check permissions and try again."


# Format


class FragmentFormatError(FraggerError):
    """Fragment contents do not follow the on-disk format."""

    def __init__(self, path=None):
        super().__init__(path)
        self.path = path


class TruncatedFragment(FragmentFormatError, CouldNotReadFile):
    @property
    def description(self):
        return (f"Fragment {self.path} is shorter than its 4 byte header. "
                "The file may be truncated or corrupt.")


class InvalidUtf8(FragmentFormatError):
    @property
    def description(self):
        return (f"Invalid string in {self.path}. The utf-8 bytes may have been "
                "manipulated or changed.")


class MissingMetadata(FragmentFormatError):
    @property
    def description(self):
        return (f"No metadata fragment (sequence number 0) found in {self.path}. "
                "The original file name cannot be recovered.")


class NoFragments(FragmentFormatError):
    @property
    def description(self):
        return f"No .frag files were found in {self.path}."
