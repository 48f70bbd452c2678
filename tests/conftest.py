import pytest


def sample_bytes(size):
    """Deterministic, non-repeating-looking content."""
    return bytes((i * 31 + i // 251) % 256 for i in range(size))


@pytest.fixture
def make_file(tmp_path):
    def _make(name, size):
        path = tmp_path / name
        path.write_bytes(sample_bytes(size))
        return path
    return _make
