import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def env_int(name, default):
    """Read a positive integer setting, falling back to ``default`` if it is malformed."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value <= 0:
        logger.warning("Ignoring %s=%r: expected a positive integer, using %d", name, raw, default)
        return default
    return value


def env_log_level(name, default):
    """Read a logging level name, falling back to ``default`` if it is unknown."""
    raw = os.getenv(name)
    if raw is None:
        return default
    level = raw.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        logger.warning("Ignoring %s=%r: unknown log level, using %s", name, raw, default)
        return default
    return level


# A kilobyte is 1024 bytes
KILOBYTE = 1024

# Chunk size limits (bytes, header included)
MIN_CHUNK_SIZE = KILOBYTE
MAX_CHUNK_SIZE = 4 * KILOBYTE ** 4  # 4 TB

# Largest source file accepted for splitting
MAX_FILE_SIZE = 4 * KILOBYTE ** 4  # 4 TB

# Upper bound for the reassembly read buffer
MAX_BUFFER_SIZE = 128 * KILOBYTE ** 2  # 128 MB

# Every fragment starts with a 4 byte little-endian sequence number
HEADER_SIZE = 4
METADATA_SEQUENCE = 0

# Fragment directory layout
FRAGMENT_EXTENSION = ".frag"
METADATA_FRAGMENT_NAME = "filedata.frag"
DATA_FRAGMENT_TEMPLATE = "split_file_{}.frag"

# Chunk size used when the caller does not pick one
DEFAULT_CHUNK_SIZE = env_int("FRAGGER_CHUNK_SIZE_KB", 25) * KILOBYTE

LOG_LEVEL = env_log_level("FRAGGER_LOG_LEVEL", "WARNING")

# Named chunk sizes for common message size limits
CHUNK_PRESETS = {
    "sms": 3584 * KILOBYTE,
    "discord": 10 * KILOBYTE * KILOBYTE,
    "imessage": 100 * KILOBYTE * KILOBYTE,
}
