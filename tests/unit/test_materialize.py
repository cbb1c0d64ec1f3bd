"""Unit tests for writing object streams to disk."""

import errno
import io
import os
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import IncompleteReadError

from s3_downloader.exceptions import DiskFullError, FolderCreateError, StreamWriteError
from s3_downloader.materialize import (
    DownloadOutcome,
    extract_filename,
    materialize,
    unique_file_path,
)


class _FailingStream(io.RawIOBase):
    def __init__(self, first_chunk: bytes, error: Exception):
        self._first_chunk = first_chunk
        self._error = error
        self._served = False

    def readable(self):
        return True

    def read(self, size=-1):
        if not self._served:
            self._served = True
            return self._first_chunk
        raise self._error


class TestExtractFilename:
    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("reports/q1.pdf", "q1.pdf"),
            ("a/b/c/data.tar.gz", "data.tar.gz"),
            ("plain.txt", "plain.txt"),
            ("trailing/", "trailing/"),
        ],
    )
    def test_takes_text_after_last_separator(self, key, expected):
        assert extract_filename(key) == expected


class TestUniqueFilePath:
    @staticmethod
    def _exists_in(names: set[str]):
        return lambda path: os.path.basename(path) in names

    def test_free_name_is_kept(self):
        assert unique_file_path("/dl", "a.txt", self._exists_in(set())) == os.path.join("/dl", "a.txt")

    def test_first_collision_gets_suffix_1(self):
        assert unique_file_path("/dl", "a.txt", self._exists_in({"a.txt"})) == os.path.join("/dl", "a_1.txt")

    def test_lowest_free_suffix_wins(self):
        names = {"a.txt", "a_1.txt", "a_3.txt"}
        assert unique_file_path("/dl", "a.txt", self._exists_in(names)) == os.path.join("/dl", "a_2.txt")

    def test_suffix_goes_before_last_extension(self):
        path = unique_file_path("/dl", "data.tar.gz", self._exists_in({"data.tar.gz"}))
        assert path == os.path.join("/dl", "data.tar_1.gz")

    def test_name_without_extension(self):
        assert unique_file_path("/dl", "README", self._exists_in({"README"})) == os.path.join("/dl", "README_1")


class TestMaterialize:
    @pytest.mark.asyncio
    async def test_writes_stream_and_reports_disk_size(self, tmp_path):
        outcome = await materialize(io.BytesIO(b"hello world"), "a.txt", str(tmp_path))

        assert outcome == DownloadOutcome(
            file_name="a.txt",
            file_path=str(tmp_path / "a.txt"),
            size_bytes=11,
            folder=str(tmp_path),
        )
        assert (tmp_path / "a.txt").read_bytes() == b"hello world"

    @pytest.mark.asyncio
    async def test_creates_missing_folders(self, tmp_path):
        folder = tmp_path / "nested" / "deeper"

        outcome = await materialize(io.BytesIO(b"x"), "a.txt", str(folder))

        assert folder.is_dir()
        assert os.path.exists(outcome.file_path)

    @pytest.mark.asyncio
    async def test_existing_file_gets_suffixes(self, tmp_path):
        (tmp_path / "a.txt").write_bytes(b"original")

        first = await materialize(io.BytesIO(b"one"), "a.txt", str(tmp_path))
        second = await materialize(io.BytesIO(b"two"), "a.txt", str(tmp_path))

        assert os.path.basename(first.file_path) == "a_1.txt"
        assert os.path.basename(second.file_path) == "a_2.txt"
        assert (tmp_path / "a.txt").read_bytes() == b"original"
        assert first.file_name == "a.txt"

    @pytest.mark.asyncio
    async def test_overwrite_replaces_existing_file(self, tmp_path):
        (tmp_path / "a.txt").write_bytes(b"original content")

        outcome = await materialize(io.BytesIO(b"new"), "a.txt", str(tmp_path), overwrite=True)

        assert outcome.file_path == str(tmp_path / "a.txt")
        assert outcome.size_bytes == 3

    @pytest.mark.asyncio
    async def test_accepts_iterable_of_chunks(self, tmp_path):
        outcome = await materialize(iter([b"ab", b"cd", b"e"]), "chunks.bin", str(tmp_path))

        assert outcome.size_bytes == 5

    @pytest.mark.asyncio
    async def test_empty_stream_gives_empty_file(self, tmp_path):
        outcome = await materialize(io.BytesIO(b""), "empty.txt", str(tmp_path))

        assert outcome.size_bytes == 0

    @pytest.mark.asyncio
    async def test_stream_is_closed_after_write(self, tmp_path):
        stream = io.BytesIO(b"data")

        await materialize(stream, "a.txt", str(tmp_path))

        assert stream.closed

    @pytest.mark.asyncio
    async def test_folder_creation_failure(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_bytes(b"")

        with pytest.raises(FolderCreateError) as exc_info:
            await materialize(io.BytesIO(b"x"), "a.txt", str(blocker / "sub"))

        assert exc_info.value.path == str(blocker / "sub")

    @pytest.mark.asyncio
    async def test_interrupted_stream_removes_partial_file(self, tmp_path):
        stream = _FailingStream(b"partial", IncompleteReadError(actual_bytes=7, expected_bytes=100))

        with pytest.raises(StreamWriteError):
            await materialize(stream, "a.txt", str(tmp_path))

        assert not (tmp_path / "a.txt").exists()
        assert stream.closed

    @pytest.mark.asyncio
    async def test_disk_full_is_reported(self, tmp_path):
        handle = MagicMock()
        handle.__enter__.return_value = handle
        handle.__exit__.return_value = False
        handle.write.side_effect = OSError(errno.ENOSPC, "No space left on device")

        with patch("builtins.open", return_value=handle):
            with pytest.raises(DiskFullError):
                await materialize(io.BytesIO(b"data"), "a.txt", str(tmp_path))
