"""Tests for the walk-once archive index."""

import logging

import pytest
from ghost2zola.archive import ArchiveIndex, EntryKind
from ghost2zola.archive.index import log_progress
from ghost2zola.errors import ArchiveCorruptError, ReadFailedError


@pytest.fixture
def sample_archive(make_archive):
    return make_archive({
        "./blog/": None,
        "./blog/content/data/ghost.db": b"database bytes",
        "./blog/content/images/2020/01/photo.jpg": b"\xff\xd8jpeg",
        "./blog/content/themes/casper/index.hbs": b"{{body}}",
    }, compression="gz")


class TestArchiveIndex:
    """Test indexing and spilling."""

    def test_paths_are_normalized(self, sample_archive):
        """Leading ./ and trailing slashes are dropped, archive order is kept."""
        with ArchiveIndex.build(sample_archive) as index:
            assert index.paths() == [
                "blog",
                "blog/content/data/ghost.db",
                "blog/content/images/2020/01/photo.jpg",
                "blog/content/themes/casper/index.hbs",
            ]
            assert index.get("blog").kind is EntryKind.DIRECTORY
            assert "./blog/content/data/ghost.db" in index
            assert len(index) == 4

    def test_spilled_bytes_are_readable_repeatedly(self, sample_archive):
        with ArchiveIndex.build(sample_archive) as index:
            entry = index.get("blog/content/images/2020/01/photo.jpg")
            assert entry.is_file
            assert entry.size == 6
            assert entry.read_bytes() == b"\xff\xd8jpeg"
            assert entry.read_bytes() == b"\xff\xd8jpeg"

    def test_retain_predicate(self, sample_archive):
        """Entries rejected by the predicate are indexed but not spilled."""
        with ArchiveIndex.build(sample_archive, retain=lambda path: path.endswith(".db")) as index:
            assert index.get("blog/content/data/ghost.db").is_materialized
            theme = index.get("blog/content/themes/casper/index.hbs")
            assert not theme.is_materialized
            with pytest.raises(ReadFailedError):
                theme.read_bytes()
            with pytest.raises(ReadFailedError):
                index.local_path(theme.path)

    def test_no_spill(self, sample_archive):
        with ArchiveIndex.build(sample_archive, spill=False) as index:
            assert [entry.path for entry in index.files()] == [
                "blog/content/data/ghost.db",
                "blog/content/images/2020/01/photo.jpg",
                "blog/content/themes/casper/index.hbs",
            ]
            assert not any(entry.is_materialized for entry in index)

    def test_close_removes_arena(self, sample_archive):
        index = ArchiveIndex.build(sample_archive)
        local = index.local_path("blog/content/data/ghost.db")
        assert local.exists()
        index.close()
        assert not local.exists()

    def test_truncated_archive(self, make_archive, tmp_path):
        """A stream cut off mid-member is reported as corrupt."""
        path = make_archive({"blog/content/data/ghost.db": b"x" * 20000})
        truncated = tmp_path / "truncated.tar"
        truncated.write_bytes(path.read_bytes()[:4096])
        with pytest.raises(ArchiveCorruptError):
            ArchiveIndex.build(truncated)

    def test_unknown_path(self, sample_archive):
        with ArchiveIndex.build(sample_archive) as index:
            assert index.get("blog/content/missing.txt") is None
            with pytest.raises(ReadFailedError):
                index.local_path("blog/content/missing.txt")


class TestLogProgress:
    """Progress is logged at fixed entry intervals."""

    def test_intervals(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="ghost2zola.archive.index"):
            log_progress(1, "Indexed")
            log_progress(0x2000, "Indexed")
            log_progress(0x8000, "Indexed")
        levels = [(record.levelno, record.getMessage()) for record in caplog.records]
        assert levels == [
            (logging.DEBUG, "Indexed 8192 archive entries"),
            (logging.INFO, "Indexed 32768 archive entries"),
        ]
