# tests/test_repacker.py

import io
import struct

import pytest

from bnd.archive import BNDArchive
from bnd.byte_source import ByteSource
from bnd.config import Config
from bnd.errors import SourceReadError, DestinationWriteError, InvalidMagicError
from bnd.extractor import extract
from bnd.path_resolver import resolve
from bnd.repacker import align, build_disk_index, repack, repack_file

from builders import build_bnd, dir_entry, file_entry, find_entry


def run_repack(original_bytes: bytes, input_root, **kwargs):
    """Repacks into an in-memory copy and returns (new bytes, report)."""
    original = ByteSource(io.BytesIO(original_bytes), "original.bnd")
    archive = BNDArchive.load(original)
    target_stream = io.BytesIO(original_bytes)
    report = repack(archive, original, ByteSource(target_stream, "new.bnd"), input_root, **kwargs)
    return target_stream.getvalue(), report


def payloads(data: bytes):
    source = ByteSource(io.BytesIO(data))
    archive = BNDArchive.load(source)
    return {e.name: source.read_exact(e.file_offset, e.file_size) for e in archive.files()}


def test_align():
    assert align(0, 16) == 0
    assert align(1, 16) == 16
    assert align(16, 16) == 16
    assert align(17, 16) == 32
    assert align(5, 4) == 8


def test_round_trip_preserves_payloads(tmp_path, sample_source, sample_bytes):
    archive = BNDArchive.load(sample_source)
    extract(archive, sample_source, tmp_path / "tree")

    new_bytes, report = run_repack(sample_bytes, tmp_path / "tree")

    assert payloads(new_bytes) == payloads(sample_bytes)
    assert report.preserved == []
    assert sorted(report.replaced) == ["chara/a.dat", "chara/c.dat", "lost.bin", "root.txt", "stage/b.dat"]


def test_round_trip_keeps_identity_fields(tmp_path, sample_source, sample_bytes):
    archive = BNDArchive.load(sample_source)
    extract(archive, sample_source, tmp_path / "tree")
    new_bytes, _ = run_repack(sample_bytes, tmp_path / "tree")

    before = BNDArchive.load(ByteSource(io.BytesIO(sample_bytes)))
    after = BNDArchive.load(ByteSource(io.BytesIO(new_bytes)))
    assert [e.identity for e in after.entries] == [e.identity for e in before.entries]
    assert after.header == before.header
    assert after.info == before.info
    assert after.total_files == before.total_files


def test_header_info_and_names_are_byte_identical(sample_built, sample_bytes, tmp_path):
    (tmp_path / "empty_tree").mkdir()
    new_bytes, _ = run_repack(sample_bytes, tmp_path / "empty_tree")

    toc_start = sample_built.table_offset
    # Header, info section (with padding) and TOC counts
    assert new_bytes[:toc_start + 8] == sample_bytes[:toc_start + 8]
    # Entry info area up to the data start
    area = sample_built.entry_info_area
    assert new_bytes[area:sample_built.chunks] == sample_bytes[area:sample_built.chunks]
    # Hash and entry info offset of every TOC record
    for i in range(8):
        record = toc_start + 8 + 16 * i
        assert new_bytes[record:record + 8] == sample_bytes[record:record + 8]


def test_missing_files_are_copied_from_original(tmp_path, sample_bytes):
    (tmp_path / "empty_tree").mkdir()
    new_bytes, report = run_repack(sample_bytes, tmp_path / "empty_tree")
    assert payloads(new_bytes) == payloads(sample_bytes)
    assert report.replaced == []
    assert len(report.preserved) == 5


def test_offsets_are_aligned_and_ordered(tmp_path, sample_built, sample_bytes):
    (tmp_path / "empty_tree").mkdir()
    new_bytes, report = run_repack(sample_bytes, tmp_path / "empty_tree")
    archive = BNDArchive.load(ByteSource(io.BytesIO(new_bytes)))

    chunks = sample_built.chunks
    placed = {e.name: (e.file_offset, e.file_size) for e in archive.files()}
    # Original storage order: c.dat, a.dat, root.txt, b.dat, lost.bin
    assert placed["c.dat"] == (chunks, 19)
    assert placed["a.dat"] == (chunks + 32, 37)
    assert placed["root.txt"] == (chunks + 80, 100)
    assert placed["b.dat"] == (chunks + 192, 5)
    assert placed["lost.bin"] == (chunks + 208, 1)
    assert all(offset % 16 == 0 for offset, _ in placed.values())


def test_padding_is_zero_and_stale_bytes_are_dropped(tmp_path, sample_built, sample_bytes):
    (tmp_path / "empty_tree").mkdir()
    new_bytes, report = run_repack(sample_bytes, tmp_path / "empty_tree")
    chunks = sample_built.chunks

    assert len(new_bytes) == chunks + 209
    assert report.final_size == len(new_bytes)
    assert b"STALE" not in new_bytes
    assert new_bytes[chunks + 19:chunks + 32] == b"\x00" * 13


def test_directories_serialize_with_zero_offset(tmp_path, sample_built, sample_bytes):
    data = bytearray(sample_bytes)
    # Directory record 0 carries a stray offset on disk
    struct.pack_into('<i', data, sample_built.table_offset + 8 + 8, 0x40)
    (tmp_path / "empty_tree").mkdir()
    new_bytes, _ = run_repack(bytes(data), tmp_path / "empty_tree")

    for i in (0, 1, 7):
        record = sample_built.table_offset + 8 + 16 * i
        _, _, offset, size = struct.unpack_from('<Iiii', new_bytes, record)
        assert (offset, size) == (0, 0)


def selective_archive():
    return build_bnd([
        dir_entry("data"),
        file_entry("A.dat", "data/A.dat", b"original-a"),
        file_entry("B.dat", "data/B.dat", b"original-b"),
    ])


def test_only_matching_file_is_replaced(tmp_path):
    built = selective_archive()
    tree = tmp_path / "tree"
    (tmp_path / "tree" / "data").mkdir(parents=True)
    (tree / "data" / "A.dat").write_bytes(b"brand new contents for A")

    new_bytes, report = run_repack(built.data, tree)
    result = payloads(new_bytes)

    assert result["A.dat"] == b"brand new contents for A"
    assert result["B.dat"] == b"original-b"
    assert report.replaced == ["data/A.dat"]
    assert report.preserved == ["data/B.dat"]

    archive = BNDArchive.load(ByteSource(io.BytesIO(new_bytes)))
    a_entry, b_entry = find_entry(archive, "A.dat"), find_entry(archive, "B.dat")
    assert a_entry.file_size == 24
    assert b_entry.file_offset == align(a_entry.file_offset + 24, 16)


def test_disk_lookup_ignores_case(tmp_path):
    built = selective_archive()
    tree = tmp_path / "tree"
    (tree / "DATA").mkdir(parents=True)
    (tree / "DATA" / "b.DAT").write_bytes(b"shouty")

    new_bytes, report = run_repack(built.data, tree)
    assert payloads(new_bytes)["B.dat"] == b"shouty"
    assert report.replaced == ["data/B.dat"]


def test_reuses_given_path_map(tmp_path, sample_bytes):
    original = ByteSource(io.BytesIO(sample_bytes))
    archive = BNDArchive.load(original)
    path_map = resolve(archive)
    (tmp_path / "chara").mkdir()
    (tmp_path / "chara" / "c.dat").write_bytes(b"new c")

    target = io.BytesIO(sample_bytes)
    report = repack(archive, original, ByteSource(target), tmp_path, path_map=path_map)
    assert report.replaced == ["chara/c.dat"]
    assert payloads(target.getvalue())["c.dat"] == b"new c"


def test_truncated_original_raises(tmp_path, sample_built, sample_bytes):
    # Ends inside c.dat, the first payload in storage order
    short = sample_bytes[:sample_built.chunks + 5]
    (tmp_path / "empty_tree").mkdir()
    with pytest.raises(SourceReadError) as excinfo:
        run_repack(short, tmp_path / "empty_tree")
    assert excinfo.value.name == "c.dat"


def test_rejects_bad_alignment(tmp_path, sample_bytes):
    with pytest.raises(ValueError):
        run_repack(sample_bytes, tmp_path, alignment=12)


def test_custom_alignment(tmp_path, sample_bytes):
    (tmp_path / "empty_tree").mkdir()
    new_bytes, _ = run_repack(sample_bytes, tmp_path / "empty_tree", alignment=64)
    archive = BNDArchive.load(ByteSource(io.BytesIO(new_bytes)))
    assert all(e.file_offset % 64 == 0 for e in archive.files())


def test_build_disk_index(tmp_path):
    (tmp_path / "Sub" / "Deep").mkdir(parents=True)
    (tmp_path / "Sub" / "Deep" / "File.BIN").write_bytes(b"1")
    (tmp_path / "top.txt").write_bytes(b"2")
    index = build_disk_index(tmp_path)
    assert set(index) == {"sub/deep/file.bin", "top.txt"}
    assert index["top.txt"].read_bytes() == b"2"


def test_repack_file_writes_sibling_archive(tmp_path, sample_file, sample_bytes):
    tree = tmp_path / "tree"
    (tree / "stage").mkdir(parents=True)
    (tree / "stage" / "b.dat").write_bytes(b"patched")
    config = Config(tmp_path / "missing.json")
    config.set('show_progress', False)

    report = repack_file(sample_file, tree, config=config)

    assert report.output_path == tmp_path / "sample_new.bnd"
    assert sample_file.read_bytes() == sample_bytes
    assert payloads(report.output_path.read_bytes())["b.dat"] == b"patched"
    assert report.final_size == report.output_path.stat().st_size


def test_repack_file_honours_output_suffix(tmp_path, sample_file):
    (tmp_path / "tree").mkdir()
    config = Config(tmp_path / "missing.json")
    config.set('output_suffix', '_mod')
    config.set('show_progress', False)
    report = repack_file(sample_file, tmp_path / "tree", config=config)
    assert report.output_path.name == "sample_mod.bnd"


def test_repack_file_refuses_to_overwrite_original(tmp_path, sample_file):
    (tmp_path / "tree").mkdir()
    config = Config(tmp_path / "missing.json")
    with pytest.raises(DestinationWriteError):
        repack_file(sample_file, tmp_path / "tree", output_path=sample_file, config=config)


def test_bad_magic_leaves_no_output(tmp_path, sample_bytes):
    broken = tmp_path / "broken.bnd"
    broken.write_bytes(b"NOPE" + sample_bytes[4:])
    (tmp_path / "tree").mkdir()
    with pytest.raises(InvalidMagicError):
        repack_file(broken, tmp_path / "tree", config=Config(tmp_path / "missing.json"))
    assert not (tmp_path / "broken_new.bnd").exists()


def test_empty_replacement_keeps_original_payload(tmp_path):
    built = build_bnd([
        dir_entry("d"),
        file_entry("x", "d/x", b"xx"),
        file_entry("y", "d/y", b"yy"),
    ])
    tree = tmp_path / "tree"
    (tree / "d").mkdir(parents=True)
    (tree / "d" / "x").write_bytes(b"")

    new_bytes, report = run_repack(built.data, tree)
    archive = BNDArchive.load(ByteSource(io.BytesIO(new_bytes)))

    assert [e.name for e in archive.files()] == ["x", "y"]
    assert [e.name for e in archive.directories()] == ["d"]
    assert payloads(new_bytes) == {"x": b"xx", "y": b"yy"}
    assert report.replaced == []
    assert report.preserved == ["d/x", "d/y"]
