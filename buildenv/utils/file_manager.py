import os
import shutil
import tarfile
import threading
import time
import zlib

import requests
import urllib3

from ..cli_logger import logger
from ..errors import ExtractionError, PathTraversal, TransportError
from ..models import DownloadOutcome

CHUNK_SIZE = 1024 * 256  # 256KB chunks

# flattened extractions share one directory, so they run one at a time
_flatten_lock = threading.Lock()

_STREAM_ERRORS = (
    tarfile.TarError,
    zlib.error,
    EOFError,
    OSError,
    requests.exceptions.RequestException,
    urllib3.exceptions.HTTPError,
)

# -------------------- Helpers: safe paths --------------------

def _is_within(base, path):
    """True if path, with symlinks resolved, is base or lies below it."""
    base = os.path.realpath(base)
    path = os.path.realpath(path)
    try:
        return os.path.commonpath([base, path]) == base
    except ValueError:
        # different drives
        return False

def get_destination_filepath(download_path, entry_name, library_id, extract_all_to_root=False):
    if extract_all_to_root:
        return os.path.join(download_path, os.path.basename(entry_name))
    return os.path.join(download_path, library_id, entry_name)

def resolve_destination(download_path, entry_name, library_id, extract_all_to_root=False):
    """
    Returns where an archive entry is written, refusing anything that escapes download_path.

    Raises PathTraversal for entries like "../../etc/passwd", absolute names, or names
    that resolve outside download_path through an existing symlink.
    """
    filepath = get_destination_filepath(download_path, entry_name, library_id, extract_all_to_root)
    if os.path.basename(filepath) in ("", ".", ".."):
        raise PathTraversal(f"Unsafe entry name: {entry_name}", library_id=library_id, entry_name=entry_name)
    if not _is_within(download_path, os.path.dirname(filepath)) or not _is_within(download_path, filepath):
        raise PathTraversal(f"Unsafe path detected: {filepath}", library_id=library_id, entry_name=entry_name)
    return filepath

# -------------------- Extraction --------------------

def _extract_tar_stream(fileobj, download_path, library_id, version, extract_all_to_root):
    with tarfile.open(fileobj=fileobj, mode="r|gz") as tar:
        for member in tar:
            if member.isdir():
                if extract_all_to_root or os.path.normpath(member.name) == ".":
                    continue
                try:
                    dirpath = resolve_destination(download_path, member.name, library_id)
                except PathTraversal:
                    logger.error(f"Library {library_id}/{version} is using a zip-slip, skipping directory")
                    continue
                logger.step_info(f"creating: {member.name}", indent=3)
                os.makedirs(dirpath, exist_ok=True)
                continue

            if not member.isfile():
                # links could point later writes outside the destination
                logger.warning(f"Library {library_id}/{version} contains unsupported entry {member.name}, skipping file")
                continue

            try:
                filepath = resolve_destination(download_path, member.name, library_id, extract_all_to_root)
            except PathTraversal:
                logger.error(f"Library {library_id}/{version} is using a zip-slip, skipping file")
                continue

            if not extract_all_to_root:
                os.makedirs(os.path.dirname(filepath), exist_ok=True)

            if os.path.exists(filepath):
                logger.step_info(f" replace: {member.name}", indent=2)
            else:
                logger.step_info(f"extracting: {member.name}", indent=2)

            if member.size == 0:
                with open(filepath, "wb"):
                    pass
            else:
                src = tar.extractfile(member)
                with src as src_file, open(filepath, "wb") as out:
                    shutil.copyfileobj(src_file, out, CHUNK_SIZE)
            # Preserve file permissions
            if member.mode:
                os.chmod(filepath, member.mode & 0o777)


def extract_stream(fileobj, download_path, library_id, version, extract_all_to_root=False):
    """Extracts a gzip-compressed tar stream for one library into download_path."""
    try:
        if extract_all_to_root:
            with _flatten_lock:
                _extract_tar_stream(fileobj, download_path, library_id, version, True)
        else:
            _extract_tar_stream(fileobj, download_path, library_id, version, False)
    except _STREAM_ERRORS as e:
        logger.error(f"Error in tar handling: {e}")
        raise ExtractionError(f"Unable to extract {library_id} {version}: {e}", library_id=library_id) from e

# -------------------- Download & Extract --------------------

def fetch_and_extract(package_url, download_path, library_id, version, extract_all_to_root=False, timeout=60):
    """
    Streams a package archive from package_url and unpacks it while it downloads.

    Files already written stay on disk when the stream fails half way.
    """
    start_time = time.perf_counter_ns()
    try:
        resp = requests.get(package_url, stream=True, timeout=timeout)
    except requests.exceptions.RequestException as e:
        logger.error(f"Error in request handling: {e}")
        raise TransportError(
            f"Unable to request library from conan: {e}", library_id=library_id, url=package_url
        ) from e

    with resp:
        if resp.status_code != 200:
            logger.error(f"Error requesting package from conan: {resp.status_code} for {package_url}")
            raise TransportError(
                f"Unable to request library from conan: {resp.status_code}",
                library_id=library_id, url=package_url, status_code=resp.status_code,
            )
        extract_stream(resp.raw, download_path, library_id, version, extract_all_to_root)

    end_time = time.perf_counter_ns()
    return DownloadOutcome(
        step=f"Download of {library_id} {version}",
        package_url=package_url,
        time=(end_time - start_time) / 1_000_000,
    )
