"""Obtain a local archive file for a selected package."""
from __future__ import annotations

import copy
import logging
import os
import re
import zipfile
import zlib
from typing import Protocol

from common.http_client import download
from common.logging_utils import safe_url
from constants import DistTypes
from errors import FetchError
from versioning.models import PackageRef

logger = logging.getLogger(__name__)


class ArchiveFetcher(Protocol):
    """Produces a local archive path for a package."""

    def fetch(self, package: PackageRef, dest_dir: str) -> str:
        """Return the path of a local archive matching ``package.dist_type``."""


def archive_filename(package: PackageRef) -> str:
    """``vendor-name-<version>.<ext>`` with filesystem-unsafe characters replaced."""
    base = f"{package.name}-{package.pretty_version or package.version}"
    base = re.sub(r"[^A-Za-z0-9._-]+", "-", base)
    ext = DistTypes.TAR.value if package.dist_type.lower().startswith("tar") else DistTypes.ZIP.value
    return f"{base}.{ext}"


def flatten_single_root(zip_path: str) -> bool:
    """Rewrite a zip whose entries all sit under one top-level directory.

    Dist zipballs usually wrap the package in ``<vendor>-<name>-<ref>/``; the
    project layout expects the package contents at the root.

    Returns:
        True when the archive was rewritten.
    """
    flat_path = zip_path + ".flat"
    try:
        with zipfile.ZipFile(zip_path) as source:
            names = [n for n in source.namelist() if n.strip("/")]
            roots = {n.split("/", 1)[0] for n in names}
            if len(roots) != 1 or not all("/" in n for n in names):
                return False
            prefix = roots.pop() + "/"
            with zipfile.ZipFile(flat_path, "w", compression=zipfile.ZIP_DEFLATED) as target:
                for info in source.infolist():
                    stripped = info.filename[len(prefix):]
                    if not stripped:
                        continue
                    renamed = copy.copy(info)
                    renamed.filename = stripped
                    target.writestr(renamed, b"" if info.is_dir() else source.read(info))
        os.replace(flat_path, zip_path)
    finally:
        if os.path.exists(flat_path):
            os.remove(flat_path)
    return True


class DistDownloader:
    """ArchiveFetcher that downloads the package's dist URL."""

    def __init__(self, flatten: bool = True):
        self.flatten = flatten

    def fetch(self, package: PackageRef, dest_dir: str) -> str:
        """Download ``package`` into ``dest_dir``.

        Raises:
            FetchError: when the package has no dist URL, the download fails
                or the archive cannot be written to ``dest_dir``.
        """
        if not package.dist_url:
            raise FetchError(f"Package {package.pretty_string} has no distribution URL.")
        dest_path = os.path.join(dest_dir, archive_filename(package))
        try:
            os.makedirs(dest_dir, exist_ok=True)
            logger.info("Downloading %s from %s", package.pretty_string, safe_url(package.dist_url))
            download(package.dist_url, dest_path, sha1=package.dist_shasum)

            if self.flatten and package.dist_type.lower() == DistTypes.ZIP.value:
                try:
                    if flatten_single_root(dest_path):
                        logger.debug("Stripped top-level directory from %s", dest_path)
                except (zipfile.BadZipFile, zlib.error):
                    # Leave it to the extractor to classify.
                    logger.debug("Downloaded file %s is not a readable zip", dest_path)
        except OSError as exc:
            raise FetchError(
                f"Could not store {package.pretty_string} in {dest_dir}: {exc}",
                url=safe_url(package.dist_url),
            ) from exc
        return dest_path
