import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import ExtractionError, TransportError

AUTODETECT_VERSION = "autodetect"


@dataclass(frozen=True)
class CompilationConfig:
    """The parts of a compiler invocation that select a binary package."""

    compiler_id: str
    arch: str = "x86_64"
    libcxx: str = "libstdc++"
    compiler_type: str = ""

    @property
    def compiler_type_or_gcc(self):
        return self.compiler_type or "gcc"

    @classmethod
    def from_options(cls, compiler_type, compiler_id, options=None, default_arch="x86_64"):
        """
        Builds a configuration from the command-line options a compiler will be run with.
        """
        options = list(options or [])
        return cls(
            compiler_id=compiler_id,
            arch=_target_from_options(options, default_arch),
            libcxx=_libcxx_from_options(options),
            compiler_type=compiler_type or "",
        )


def _normalize_arch(arch):
    if arch in ("i386", "i486", "i586", "i686"):
        return "x86"
    if arch == "amd64":
        return "x86_64"
    return arch


def _target_from_options(options, default_arch):
    arch = default_arch
    for i, option in enumerate(options):
        if option == "-m32":
            arch = "x86"
        elif option == "-m64":
            arch = "x86_64"
        elif option.startswith("--target="):
            arch = option[len("--target="):].split("-")[0]
        elif option in ("-target", "--target") and i + 1 < len(options):
            arch = options[i + 1].split("-")[0]
    return _normalize_arch(arch)


def _libcxx_from_options(options):
    if "-stdlib=libc++" in options:
        return "libc++"
    return "libstdc++"


@dataclass
class LibraryRequirement:
    version: str
    lookupname: Optional[str] = None
    lookupversion: Optional[str] = None
    packagedheaders: bool = False
    libpath: List[str] = field(default_factory=list)
    liblink: List[str] = field(default_factory=list)
    staticliblink: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        if isinstance(data, str):
            return cls(version=data)
        if "version" not in data:
            raise ValueError("Library requirement is missing a 'version'")
        return cls(
            version=str(data["version"]),
            lookupname=data.get("lookupname") or None,
            lookupversion=data.get("lookupversion") or None,
            packagedheaders=bool(data.get("packagedheaders", False)),
            libpath=list(data.get("libpath", [])),
            liblink=list(data.get("liblink", [])),
            staticliblink=list(data.get("staticliblink", [])),
        )

    def lookup_name(self, library_id):
        return self.lookupname or library_id

    def lookup_version(self):
        return self.lookupversion or self.version

    def should_download(self):
        return self.version != AUTODETECT_VERSION

    def has_binaries_to_link(self):
        """True when the library ships binaries the linker needs and no prebuilt path is set."""
        if self.libpath:
            return False
        if not (self.staticliblink or self.liblink):
            return False
        return self.version != AUTODETECT_VERSION


@dataclass(frozen=True)
class BuildProperties:
    os: str
    build_type: str
    compiler: str
    compiler_version: str
    compiler_libcxx: str
    arch: str
    stdver: str = ""
    flagcollection: str = ""

    def as_dict(self) -> Dict[str, str]:
        return {
            "os": self.os,
            "build_type": self.build_type,
            "compiler": self.compiler,
            "compiler.version": self.compiler_version,
            "compiler.libcxx": self.compiler_libcxx,
            "arch": self.arch,
            "stdver": self.stdver,
            "flagcollection": self.flagcollection,
        }


@dataclass
class Candidate:
    package_hash: str
    settings: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_index(cls, package_hash, body):
        settings = {}
        if isinstance(body, dict):
            settings = dict(body.get("settings") or {})
        return cls(package_hash=package_hash, settings=settings)


@dataclass
class DownloadOutcome:
    step: str
    package_url: str
    time: float


class ResultStatus(enum.Enum):
    DOWNLOADED = "downloaded"
    NOT_FOUND = "not_found"
    NO_MATCH = "no_match"
    FAILED = "failed"


@dataclass
class LibraryResult:
    library_id: str
    status: ResultStatus
    outcome: Optional[DownloadOutcome] = None
    error: Optional[Exception] = None

    @property
    def ok(self):
        return self.status is ResultStatus.DOWNLOADED


@dataclass
class ProvisioningReport:
    """Per-library results of one provisioning call."""

    results: List[LibraryResult] = field(default_factory=list)

    @property
    def outcomes(self):
        return [r.outcome for r in self.results if r.ok]

    @property
    def failures(self):
        return [r for r in self.results if r.status is ResultStatus.FAILED]

    @property
    def succeeded(self):
        return not self.failures

    def raise_for_failures(self):
        """Raises the first fetch or extraction error, if any library failed."""
        for result in self.failures:
            if isinstance(result.error, (ExtractionError, TransportError)):
                raise result.error
            raise ExtractionError(str(result.error), library_id=result.library_id) from result.error
