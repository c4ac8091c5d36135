__all__ = ["config", "log", "provision", "version"]

from .config import config
from .log import log
from .provision import provision
from .version import version
