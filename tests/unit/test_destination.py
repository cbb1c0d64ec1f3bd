"""Unit tests for destination folder resolution."""

import logging
import os
import tempfile

import pytest

from s3_downloader.destination import (
    TEMP_SUBFOLDER,
    DestinationFolder,
    DestinationStrategy,
    PromptRequired,
    get_system_downloads_folder,
    get_temp_download_folder,
    resolve_destination,
)
from s3_downloader.settings import DownloaderSettings


@pytest.fixture()
def downloads(monkeypatch, tmp_path):
    folder = str(tmp_path / "Downloads")
    monkeypatch.setattr(
        "s3_downloader.destination.get_system_downloads_folder", lambda: folder
    )
    return folder


def _settings(**kwargs) -> DownloaderSettings:
    return DownloaderSettings(**kwargs)


class TestSystemDownloadsFolder:
    def test_windows_uses_userprofile(self):
        folder = get_system_downloads_folder("win32", {"USERPROFILE": "C:\\Users\\me"}, home="/ignored")
        assert folder == os.path.join("C:\\Users\\me", "Downloads")

    def test_windows_without_userprofile_uses_home(self):
        assert get_system_downloads_folder("win32", {}, home="/home/me") == os.path.join("/home/me", "Downloads")

    def test_macos_uses_home(self):
        assert get_system_downloads_folder("darwin", {}, home="/Users/me") == "/Users/me/Downloads"

    def test_linux_honors_xdg_override(self):
        folder = get_system_downloads_folder("linux", {"XDG_DOWNLOAD_DIR": "/data/dl"}, home="/home/me")
        assert folder == "/data/dl"

    def test_linux_expands_home_in_xdg_value(self):
        folder = get_system_downloads_folder("linux", {"XDG_DOWNLOAD_DIR": "$HOME/Fetched"}, home="/home/me")
        assert folder == "/home/me/Fetched"

    def test_linux_without_override(self):
        assert get_system_downloads_folder("linux", {}, home="/home/me") == "/home/me/Downloads"


class TestResolveDestination:
    def test_always_prompt_wins(self, downloads):
        result = resolve_destination(_settings(always_prompt_for_location=True, download_location="temp"))

        assert isinstance(result, PromptRequired)

    def test_downloads_strategy(self, downloads):
        result = resolve_destination(_settings(download_location="downloads"))

        assert result == DestinationFolder(os.path.abspath(downloads), DestinationStrategy.DOWNLOADS)

    def test_temp_strategy(self, downloads):
        result = resolve_destination(_settings(download_location="temp"))

        assert result.path == os.path.join(tempfile.gettempdir(), TEMP_SUBFOLDER)
        assert result.strategy is DestinationStrategy.TEMP
        assert get_temp_download_folder() == result.path

    def test_workspace_strategy(self, downloads, tmp_path):
        result = resolve_destination(_settings(download_location="workspace"), workspace_root=str(tmp_path))

        assert result == DestinationFolder(str(tmp_path), DestinationStrategy.WORKSPACE)

    def test_workspace_without_root_falls_back(self, downloads, caplog):
        with caplog.at_level(logging.WARNING):
            result = resolve_destination(_settings(download_location="workspace"))

        assert result.strategy is DestinationStrategy.DOWNLOADS
        assert "No workspace folder available" in caplog.text

    def test_custom_strategy(self, downloads, tmp_path):
        target = tmp_path / "s3-files"
        result = resolve_destination(_settings(download_location="custom", custom_download_path=str(target)))

        assert result == DestinationFolder(str(target), DestinationStrategy.CUSTOM)

    def test_empty_custom_path_falls_back_with_warning(self, downloads, caplog):
        with caplog.at_level(logging.WARNING):
            result = resolve_destination(_settings(download_location="custom", custom_download_path=""))

        assert result.path == os.path.abspath(downloads)
        assert result.strategy is DestinationStrategy.DOWNLOADS
        assert "Custom download path is empty" in caplog.text

    def test_relative_custom_path_falls_back(self, downloads, caplog):
        with caplog.at_level(logging.WARNING):
            result = resolve_destination(_settings(download_location="custom", custom_download_path="rel/dir"))

        assert result.strategy is DestinationStrategy.DOWNLOADS
        levels = {record.levelno for record in caplog.records}
        assert {logging.ERROR, logging.WARNING} <= levels

    def test_custom_path_with_missing_parent_falls_back(self, downloads, tmp_path, caplog):
        target = tmp_path / "missing" / "child"
        with caplog.at_level(logging.WARNING):
            result = resolve_destination(_settings(download_location="custom", custom_download_path=str(target)))

        assert result.strategy is DestinationStrategy.DOWNLOADS
        assert "Parent directory does not exist" in caplog.text

    def test_unknown_strategy_falls_back(self, downloads, caplog):
        with caplog.at_level(logging.WARNING):
            result = resolve_destination(_settings(download_location="cloud"))

        assert result.strategy is DestinationStrategy.DOWNLOADS
        assert "Unknown download location setting: cloud" in caplog.text

    def test_uses_supplied_logger(self, downloads):
        logger = logging.getLogger("test.destination.custom")
        records = []
        handler = logging.Handler()
        handler.emit = records.append
        logger.addHandler(handler)
        try:
            resolve_destination(_settings(download_location="cloud"), logger=logger)
        finally:
            logger.removeHandler(handler)

        assert any("Unknown download location" in r.getMessage() for r in records)
