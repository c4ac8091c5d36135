import toml
import os
from dataclasses import dataclass
from urllib.parse import urlparse
from .cli_logger import logger
from .models import LibraryRequirement

CONFIG_FILE = "buildenv.toml"
HOST_ENV_VAR = "BUILDENV_CONAN_HOST"

def load_config(path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.debug(f"Loading configuration from {config_path}")
    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            logger.error(f"Error decoding TOML file at {config_path}: {e}")
            logger.info("Please check the file's format for syntax errors.")
        except IOError as e:
            logger.error(f"Error reading configuration file at {config_path}: {e}")
            logger.info("Please check file permissions.")
    return {}

def save_config(config, path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.debug(f"Saving configuration to {config_path}")
    try:
        with open(config_path, "w") as f:
            toml.dump(config, f)
        return True
    except IOError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        logger.info("Please check file permissions and ensure the directory is writable.")
        return False


def _as_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass
class ProvisionerConfig:
    """Settings of the package index provisioner, validated when created."""

    host: str = ""
    only_on_static_lib_link: bool = False
    extract_all_to_root: bool = False
    max_workers: int = 8
    timeout: float = 60

    def __post_init__(self):
        if self.host is None:
            self.host = ""
        if not isinstance(self.host, str):
            raise ValueError(f"Package index host must be a string, got {self.host!r}")
        self.host = self.host.strip().rstrip("/")
        if self.host:
            scheme = urlparse(self.host).scheme
            if scheme not in ("http", "https"):
                raise ValueError(f"Package index host must be an http(s) URL, got '{self.host}'")
        self.only_on_static_lib_link = _as_bool(self.only_on_static_lib_link)
        self.extract_all_to_root = _as_bool(self.extract_all_to_root)
        try:
            self.max_workers = int(self.max_workers)
            self.timeout = float(self.timeout)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid provisioner setting: {e}") from e
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @classmethod
    def from_dict(cls, conf):
        """Reads the [conan] table of a loaded buildenv.toml."""
        section = (conf or {}).get("conan", {})
        host = os.environ.get(HOST_ENV_VAR) or section.get("host", "")
        return cls(
            host=host,
            only_on_static_lib_link=section.get("onlyonstaticliblink", False),
            extract_all_to_root=section.get("extractalltoroot", False),
            max_workers=section.get("maxworkers", 8),
            timeout=section.get("timeout", 60),
        )


def load_libraries(conf):
    """Reads the [libraries.<id>] tables of a loaded buildenv.toml."""
    libraries = {}
    for lib_id, details in (conf or {}).get("libraries", {}).items():
        libraries[lib_id] = LibraryRequirement.from_dict(details)
    return libraries
