from typing import Dict
from urllib.parse import quote

import requests

from ..cli_logger import logger
from ..errors import NotFound, TransportError
from ..models import Candidate

PACKAGE_ARTIFACT_KEY = "conan_package.tgz"


def _encode(segment):
    # same escaping as JavaScript's encodeURIComponent
    return quote(str(segment), safe="!*'()")


class PackageIndexClient:
    """
    Read-only client for the Conan v1 REST API of a package index.
    """

    def __init__(self, host, timeout=60):
        self.host = host.rstrip("/")
        self.timeout = timeout

    def package_url(self, library_id, version):
        lib = _encode(library_id)
        ver = _encode(version)
        return f"{self.host}/v1/conans/{lib}/{ver}/{lib}/{ver}"

    def _get_json(self, url, library_id):
        try:
            resp = requests.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request to {url} failed: {e}", library_id=library_id, url=url) from e

        if resp.status_code == 404:
            raise NotFound(f"Not found ({url})", library_id=library_id)
        try:
            resp.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise TransportError(
                f"Package index returned {resp.status_code} for {url}",
                library_id=library_id, url=url, status_code=resp.status_code,
            ) from e

        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON from {url}: {e}", library_id=library_id, url=url) from e

    def lookup_candidates(self, library_id, version) -> Dict[str, Candidate]:
        """
        Lists every package build the index has for a library version, keyed by package hash.

        Raises NotFound when the index does not know the library version, and
        TransportError for any other failure.
        """
        url = f"{self.package_url(library_id, version)}/search"
        logger.debug(f"Looking up builds of {library_id}/{version} at {url}")
        body = self._get_json(url, library_id)
        if not body:
            return {}
        if not isinstance(body, dict):
            raise TransportError(f"Unexpected search response from {url}", library_id=library_id, url=url)
        candidates = {}
        for package_hash, details in body.items():
            settings = details.get("settings") if isinstance(details, dict) else None
            if not isinstance(details, dict) or not isinstance(settings, (dict, type(None))):
                raise TransportError(
                    f"Malformed build {package_hash} in search response from {url}",
                    library_id=library_id, url=url,
                )
            candidates[package_hash] = Candidate.from_index(package_hash, details)
        return candidates

    def resolve_download_location(self, library_id, version, package_hash) -> str:
        url = f"{self.package_url(library_id, version)}/packages/{_encode(package_hash)}/download_urls"
        try:
            body = self._get_json(url, library_id)
        except NotFound as e:
            raise TransportError(str(e), library_id=library_id, url=url, status_code=404) from e

        location = body.get(PACKAGE_ARTIFACT_KEY) if isinstance(body, dict) else None
        if not location:
            raise TransportError(
                f"No {PACKAGE_ARTIFACT_KEY} in download urls of {library_id}/{version} ({package_hash})",
                library_id=library_id, url=url,
            )
        return location
