import pytest
from fragger.config import (
    DEFAULT_CHUNK_SIZE,
    HEADER_SIZE,
    MAX_CHUNK_SIZE,
    MAX_FILE_SIZE,
    MIN_CHUNK_SIZE,
)
from fragger.utils.chunker import Fragmenter, fragment_directory_for, split, validate_sizes
from fragger.utils.errors import (
    ChunkTooLarge,
    ChunkTooSmall,
    CouldNotReadFile,
    DirCreateFailed,
    NullPath,
    SourceSmallerThanChunk,
    SourceTooLarge,
)
from fragger.utils.header import decode_sequence


def test_validate_chunk_limits():
    validate_sizes(MIN_CHUNK_SIZE, 4096)
    with pytest.raises(ChunkTooSmall):
        validate_sizes(MIN_CHUNK_SIZE - 1, 4096)
    with pytest.raises(ChunkTooLarge):
        validate_sizes(MAX_CHUNK_SIZE + 1, 0)


def test_validate_source_limits():
    with pytest.raises(SourceSmallerThanChunk):
        validate_sizes(2048, 2048)
    with pytest.raises(SourceSmallerThanChunk):
        validate_sizes(2048, 100)
    with pytest.raises(SourceTooLarge):
        validate_sizes(MIN_CHUNK_SIZE * 4, MAX_FILE_SIZE + 1)


def test_validate_empty_source_is_accepted():
    validate_sizes(MIN_CHUNK_SIZE, 0)


def test_validate_sequence_overflow():
    # 4 TB in 1020 byte payloads needs more fragments than a header can number
    with pytest.raises(SourceTooLarge):
        validate_sizes(MIN_CHUNK_SIZE, MAX_FILE_SIZE)


def test_split_layout(make_file):
    src = make_file("scenario.bin", 8192)
    result = split(src, 2052)

    out_dir = src.parent / "scenario"
    assert result['directory'] == out_dir
    assert result['total_fragments'] == 4
    assert result['original_filename'] == "scenario.bin"
    assert result['size'] == 8192

    names = sorted(p.name for p in out_dir.iterdir())
    assert names == ["filedata.frag", "split_file_1.frag", "split_file_2.frag",
                     "split_file_3.frag", "split_file_4.frag"]

    assert (out_dir / "filedata.frag").read_bytes() == b"\x00\x00\x00\x00scenario.bin"

    data = src.read_bytes()
    for i in range(1, 5):
        raw = (out_dir / f"split_file_{i}.frag").read_bytes()
        assert len(raw) == 2052
        assert decode_sequence(raw[:HEADER_SIZE]) == i
        assert raw[HEADER_SIZE:] == data[(i - 1) * 2048:i * 2048]


def test_split_last_fragment_not_padded(make_file):
    src = make_file("odd.bin", 5000)
    result = split(src, 2052)

    assert result['total_fragments'] == 3
    last = (result['directory'] / "split_file_3.frag").read_bytes()
    assert len(last) == HEADER_SIZE + 5000 - 2 * 2048


def test_split_chunk_one_below_file_size(make_file):
    src = make_file("edge.bin", 4096)
    result = split(src, 4095)
    assert result['total_fragments'] >= 2


def test_split_chunk_equal_to_file_size(make_file):
    src = make_file("edge.bin", 4096)
    with pytest.raises(SourceSmallerThanChunk):
        split(src, 4096)
    assert not (src.parent / "edge").exists()


def test_split_chunk_too_small_creates_nothing(make_file):
    src = make_file("small.bin", 4096)
    with pytest.raises(ChunkTooSmall):
        split(src, MIN_CHUNK_SIZE - 1)
    assert not (src.parent / "small").exists()


def test_split_empty_file(make_file):
    src = make_file("empty.txt", 0)
    result = split(src, MIN_CHUNK_SIZE)

    assert result['total_fragments'] == 0
    assert [p.name for p in result['directory'].iterdir()] == ["filedata.frag"]


def test_split_leaves_source_untouched(make_file):
    src = make_file("keep.bin", 3000)
    before = src.read_bytes()
    split(src, 1024)
    assert src.read_bytes() == before


def test_split_missing_source(tmp_path):
    with pytest.raises(CouldNotReadFile) as excinfo:
        split(tmp_path / "nope.bin", 1024)
    assert isinstance(excinfo.value.__cause__, OSError)


def test_split_directory_source(tmp_path):
    with pytest.raises(CouldNotReadFile):
        split(tmp_path, 1024)


def test_split_null_path():
    with pytest.raises(NullPath):
        split("", 1024)
    with pytest.raises(NullPath):
        split(None, 1024)


def test_split_without_extension_collides_with_itself(make_file):
    # <parent>/<stem> is the file itself, so the directory cannot be created
    src = make_file("README", 4096)
    with pytest.raises(DirCreateFailed) as excinfo:
        split(src, 1024)
    assert excinfo.value.path == src


def test_resplit_smaller_file_drops_old_fragments(make_file):
    src = make_file("doc.bin", 10000)
    split(src, 1024)

    src.write_bytes(b"q" * 3000)
    out_dir = src.parent / "doc"
    (out_dir / "keep.txt").write_text("not a fragment")
    result = split(src, 1024)
    src.unlink()

    assert result['total_fragments'] == 3
    assert sorted(p.name for p in out_dir.iterdir()) == [
        "filedata.frag", "keep.txt", "split_file_1.frag", "split_file_2.frag", "split_file_3.frag",
    ]
    assert Fragmenter(1024).reassemble_file(out_dir).read_bytes() == b"q" * 3000


def test_fragment_directory_for(tmp_path):
    assert fragment_directory_for(tmp_path / "photo.tar.gz") == tmp_path / "photo.tar"


def test_fragmenter_defaults():
    assert Fragmenter().chunk_size == DEFAULT_CHUNK_SIZE
    assert Fragmenter(4096).chunk_size == 4096


def test_fragmenter_round_trip(make_file):
    src = make_file("report.pdf", 10000)
    original = src.read_bytes()
    fragmenter = Fragmenter(1500)

    result = fragmenter.split_file(src)
    src.unlink()
    output = fragmenter.reassemble_file(result['directory'])

    assert output.name == "report.pdf"
    assert output.read_bytes() == original
