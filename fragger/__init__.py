"""Split files into fixed-size fragment files and reassemble them."""

from .utils.chunker import Fragmenter, split, validate_sizes
from .utils.errors import FraggerError
from .utils.reassembler import describe_fragments, reassemble, scan_fragments

__version__ = "0.1.0"
