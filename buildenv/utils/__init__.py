from .build_properties import derive_build_properties
from .matcher import WILDCARD_COMPILER, candidate_matches, find_matching_hash
from .package_index import PackageIndexClient
from .file_manager import (
    extract_stream,
    fetch_and_extract,
    get_destination_filepath,
    resolve_destination,
)
