"""Tests for the dist archive fetcher."""

import zipfile
import zlib
from unittest.mock import patch

import pytest

from archive.fetcher import DistDownloader, archive_filename, flatten_single_root
from errors import FetchError
from versioning.models import PackageRef


def package(dist_type="zip", url="https://dl.test/acme-tool.zip", shasum=None):
    """Helper building the package under test."""
    dist = {"type": dist_type, "url": url, "shasum": shasum}
    return PackageRef.from_composer({"name": "Acme/Tool", "version": "v1.3.0", "dist": dist})


def write_wrapped_zip(dest_path):
    """Zipball layout with a single top-level directory."""
    with zipfile.ZipFile(dest_path, "w") as zf:
        zf.writestr("acme-tool-abc123/", "")
        zf.writestr("acme-tool-abc123/src/Tool.php", "<?php")
        zf.writestr("acme-tool-abc123/composer.json", "{}")
    return dest_path


class TestArchiveFilename:
    """Local archive naming."""

    def test_zip(self):
        assert archive_filename(package()) == "acme-tool-v1.3.0.zip"

    def test_tar(self):
        assert archive_filename(package(dist_type="tar")) == "acme-tool-v1.3.0.tar"


class TestFlattenSingleRoot:
    """Stripping the zipball wrapper directory."""

    def test_strips_wrapper(self, tmp_path):
        path = write_wrapped_zip(str(tmp_path / "a.zip"))
        assert flatten_single_root(path) is True
        with zipfile.ZipFile(path) as zf:
            assert sorted(zf.namelist()) == ["composer.json", "src/Tool.php"]
            assert zf.read("src/Tool.php") == b"<?php"

    def test_leaves_flat_archive_alone(self, tmp_path):
        path = str(tmp_path / "a.zip")
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("composer.json", "{}")
            zf.writestr("src/Tool.php", "<?php")
        assert flatten_single_root(path) is False
        with zipfile.ZipFile(path) as zf:
            assert sorted(zf.namelist()) == ["composer.json", "src/Tool.php"]

    def test_write_failure_removes_partial_copy(self, tmp_path):
        path = write_wrapped_zip(str(tmp_path / "a.zip"))
        with patch.object(zipfile.ZipFile, "writestr", side_effect=OSError("No space left on device")):
            with pytest.raises(OSError):
                flatten_single_root(path)
        assert not (tmp_path / "a.zip.flat").exists()
        with zipfile.ZipFile(path) as zf:
            assert "acme-tool-abc123/composer.json" in zf.namelist()


class TestDistDownloader:
    """DistDownloader.fetch."""

    def test_downloads_and_flattens(self, tmp_path):
        with patch("archive.fetcher.download", side_effect=lambda url, dest, sha1=None: write_wrapped_zip(dest)) as mock_dl:
            path = DistDownloader().fetch(package(shasum="abc"), str(tmp_path))

        assert path == str(tmp_path / "acme-tool-v1.3.0.zip")
        mock_dl.assert_called_once_with("https://dl.test/acme-tool.zip", path, sha1="abc")
        with zipfile.ZipFile(path) as zf:
            assert "composer.json" in zf.namelist()

    def test_flatten_disabled(self, tmp_path):
        with patch("archive.fetcher.download", side_effect=lambda url, dest, sha1=None: write_wrapped_zip(dest)):
            path = DistDownloader(flatten=False).fetch(package(), str(tmp_path))
        with zipfile.ZipFile(path) as zf:
            assert "acme-tool-abc123/composer.json" in zf.namelist()

    def test_unreadable_zip_left_for_extractor(self, tmp_path):
        def fake_download(url, dest, sha1=None):
            with open(dest, "wb") as fh:
                fh.write(b"garbage")
            return dest

        with patch("archive.fetcher.download", side_effect=fake_download):
            path = DistDownloader().fetch(package(), str(tmp_path))
        with open(path, "rb") as fh:
            assert fh.read() == b"garbage"

    def test_missing_dist_url(self, tmp_path):
        with pytest.raises(FetchError):
            DistDownloader().fetch(package(url=None), str(tmp_path))

    def test_download_error_propagates(self, tmp_path):
        with patch("archive.fetcher.download", side_effect=FetchError("boom", url="https://dl.test")):
            with pytest.raises(FetchError):
                DistDownloader().fetch(package(), str(tmp_path))

    def test_dest_dir_is_a_file(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with patch("archive.fetcher.download") as mock_dl:
            with pytest.raises(FetchError) as excinfo:
                DistDownloader().fetch(package(), str(blocker))
        mock_dl.assert_not_called()
        assert str(blocker) in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, OSError)

    def test_flatten_write_failure_is_fetch_error(self, tmp_path):
        with patch("archive.fetcher.download", side_effect=lambda url, dest, sha1=None: write_wrapped_zip(dest)):
            with patch("archive.fetcher.flatten_single_root", side_effect=OSError("No space left on device")):
                with pytest.raises(FetchError) as excinfo:
                    DistDownloader().fetch(package(), str(tmp_path))
        assert excinfo.value.url == "https://dl.test/acme-tool.zip"

    def test_corrupt_deflate_stream_left_for_extractor(self, tmp_path):
        with patch("archive.fetcher.download", side_effect=lambda url, dest, sha1=None: write_wrapped_zip(dest)):
            with patch("archive.fetcher.flatten_single_root", side_effect=zlib.error("invalid stored block lengths")):
                path = DistDownloader().fetch(package(), str(tmp_path))
        assert path == str(tmp_path / "acme-tool-v1.3.0.zip")
