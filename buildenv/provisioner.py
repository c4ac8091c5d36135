"""
Provisions prebuilt library packages from a Conan package index into a build directory.
"""

import json
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List

from .cli_logger import logger
from .config import ProvisionerConfig
from .errors import NoMatch, NotFound, ProvisioningError, TransportError
from .models import (
    CompilationConfig,
    DownloadOutcome,
    LibraryRequirement,
    LibraryResult,
    ProvisioningReport,
    ResultStatus,
)
from .utils import PackageIndexClient, derive_build_properties, fetch_and_extract, find_matching_hash


class Provisioner:
    """
    Finds, downloads and unpacks the binary package of every library a compilation needs.

    Every library runs its own pipeline (lookup, match, resolve, extract) on a bounded
    thread pool. A library the index does not have, or has no matching build for, is
    logged and left out. A failed download fails the whole call once all pipelines
    have finished.
    """

    def __init__(self, settings: ProvisionerConfig = None, index_client: PackageIndexClient = None):
        self.settings = settings or ProvisionerConfig()
        self.index = index_client or PackageIndexClient(self.settings.host, timeout=self.settings.timeout)

    def setup(
        self,
        compilation: CompilationConfig,
        download_path: str,
        libraries: Dict[str, LibraryRequirement],
        binary: bool = False,
    ) -> List[DownloadOutcome]:
        report = self.setup_report(compilation, download_path, libraries, binary)
        report.raise_for_failures()
        return report.outcomes

    def setup_report(self, compilation, download_path, libraries, binary=False) -> ProvisioningReport:
        """Like setup(), but reports per-library failures instead of raising them."""
        if not self.settings.host:
            return ProvisioningReport()

        if self.settings.only_on_static_lib_link and not binary:
            return ProvisioningReport()

        to_download = {
            lib_id: details for lib_id, details in libraries.items() if details.should_download()
        }
        return self.download_report(compilation, download_path, to_download)

    def download(self, compilation, download_path, libraries) -> List[DownloadOutcome]:
        report = self.download_report(compilation, download_path, libraries)
        report.raise_for_failures()
        return report.outcomes

    def download_report(self, compilation, download_path, libraries) -> ProvisioningReport:
        selected = {
            lib_id: details
            for lib_id, details in libraries.items()
            if details.packagedheaders or details.has_binaries_to_link()
        }
        report = ProvisioningReport()
        if not selected:
            return report

        build_properties = derive_build_properties(compilation)
        download_path = os.path.abspath(download_path)
        os.makedirs(download_path, exist_ok=True)

        with ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
            lookups = {}
            for lib_id, details in selected.items():
                future = executor.submit(
                    self.index.lookup_candidates, details.lookup_name(lib_id), details.lookup_version()
                )
                lookups[future] = lib_id

            downloads = {}
            for future in as_completed(lookups):
                lib_id = lookups[future]
                details = selected[lib_id]
                lookupname = details.lookup_name(lib_id)
                lookupversion = details.lookup_version()
                lib_ver = f"{lookupname}/{lookupversion}"

                try:
                    possible_builds = future.result()
                except (NotFound, TransportError) as e:
                    logger.warning(f"Library {lib_ver} not available")
                    logger.debug(f"Lookup of {lib_ver} failed: {e}")
                    report.results.append(LibraryResult(lib_id, ResultStatus.NOT_FOUND, error=e))
                    continue

                if not possible_builds:
                    logger.warning(f"Library {lib_ver} not available")
                    report.results.append(LibraryResult(
                        lib_id, ResultStatus.NOT_FOUND,
                        error=NotFound(f"No builds published for {lib_ver}", library_id=lib_id),
                    ))
                    continue

                package_hash = find_matching_hash(build_properties, possible_builds)
                if package_hash is None:
                    properties = json.dumps(build_properties.as_dict())
                    logger.warning(f"No build found for {lib_ver} matching {properties}")
                    report.results.append(LibraryResult(
                        lib_id, ResultStatus.NO_MATCH,
                        error=NoMatch(f"No build of {lib_ver} matches {properties}", library_id=lib_id),
                    ))
                    continue

                logger.debug(f"Found conan hash {package_hash} for {lib_ver}")
                download = executor.submit(
                    self._fetch_package, lib_id, lookupname, lookupversion, package_hash, download_path
                )
                downloads[download] = lib_id

            for future in as_completed(downloads):
                lib_id = downloads[future]
                try:
                    outcome = future.result()
                except ProvisioningError as e:
                    logger.error(f"Provisioning of {lib_id} failed: {e}")
                    report.results.append(LibraryResult(lib_id, ResultStatus.FAILED, error=e))
                    continue
                logger.success(f"{outcome.step} ({outcome.time:.0f} ms)")
                report.results.append(LibraryResult(lib_id, ResultStatus.DOWNLOADED, outcome=outcome))

        return report

    def _fetch_package(self, lib_id, lookupname, lookupversion, package_hash, download_path):
        package_url = self.index.resolve_download_location(lookupname, lookupversion, package_hash)
        logger.debug(f"Downloading {lib_id} from {package_url}")
        return fetch_and_extract(
            package_url,
            download_path,
            lib_id,
            lookupversion,
            extract_all_to_root=self.settings.extract_all_to_root,
            timeout=self.settings.timeout,
        )
