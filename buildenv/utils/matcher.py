from typing import Dict, Optional

from ..models import BuildProperties, Candidate

WILDCARD_COMPILER = "cshared"

_COMPILER_KEYS = ("compiler", "compiler.version")


def _setting_matches(key, value, settings):
    if key in _COMPILER_KEYS and settings.get(key) == WILDCARD_COMPILER:
        return True
    if key in _COMPILER_KEYS + ("compiler.libcxx",) and settings.get("compiler") == WILDCARD_COMPILER:
        return True
    return key in settings and settings[key] == value


def _required_settings(required):
    if isinstance(required, BuildProperties):
        return required.as_dict()
    return dict(required)


def candidate_matches(required, candidate: Candidate) -> bool:
    return all(
        _setting_matches(key, value, candidate.settings)
        for key, value in _required_settings(required).items()
    )


def find_matching_hash(required, candidates: Dict[str, Candidate]) -> Optional[str]:
    """
    Returns the hash of the first candidate built with the required settings, or None.

    A candidate built with the "cshared" compiler is a plain C binary and matches any
    compiler, compiler version and C++ runtime.
    """
    for package_hash, candidate in candidates.items():
        if candidate_matches(required, candidate):
            return package_hash
    return None
