"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    RESOLUTION_ERROR = 4
    SYNC_ERROR = 5


class Arch(Enum):
    """Architecture labels used by the registry and the package store.

    Args:
        Enum (string): Normalized architecture label.
    """

    ARMV7 = "armv7"
    ARMV8 = "armv8"
    X86_64 = "x86_64"
    PACKAGE = "package"  # architecture-independent (header-only) artifact


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    PORTAL_URL = "https://developer.auroraos.ru/"
    REMOTE_URL = "https://developer.auroraos.ru/conan/api"
    USER_AGENT = "aurora-conan-cli/0.1 (+https://developer.auroraos.ru)"
    DEFAULT_USER = "aurora"
    VENDOR = "aurora"

    # Reserved version token for a package whose version could not be determined
    VERSION_ERROR_SENTINEL = "error"
    # Rolling family token, e.g. "cci" matches "cci.20231101"
    FAMILY_TOKEN = "cci"
    FAMILY_WILDCARD = ".Z"

    SUPPORTED_ARCHES = [Arch.ARMV7.value, Arch.ARMV8.value, Arch.X86_64.value]
    ARCH_ALIASES = {
        "armv8": Arch.ARMV8.value,
        "aarch64": Arch.ARMV8.value,
        "armv7": Arch.ARMV7.value,
        "armv7hl": Arch.ARMV7.value,
        "x86_64": Arch.X86_64.value,
        "amd64": Arch.X86_64.value,
        "package": Arch.PACKAGE.value,
    }
    ENV_ARCH_OVERRIDES = ["AURORA_CONAN_ARCH", "RPM_ARCH"]

    THIRDPARTY_DIR = "thirdparty"
    MANIFEST_FILE = "manifest.lock.json"
    MANIFEST_VERSION = 1
    DOWNLOADS_DIR = "downloads"
    PACKAGE_ARCHIVE = "conan_package.tgz"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "AURORA_CONAN_LOG_LEVEL"
    ENV_CONFIG = "AURORA_CONAN_CONFIG"
    ENV_PORTAL_URL = "AURORA_CONAN_PORTAL_URL"
    ENV_REMOTE_URL = "AURORA_CONAN_REMOTE_URL"
    CONFIG_LOCATIONS = [
        "aurora-conan.yml",
        os.path.join("~", ".config", "aurora-conan-cli", "config.yml"),
    ]

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    DOWNLOAD_CHUNK_SIZE = 64 * 1024


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the first YAML config found.

    Lookup order: explicit path, $AURORA_CONAN_CONFIG, then
    Constants.CONFIG_LOCATIONS. A missing file yields an empty dict; a file
    that exists but cannot be parsed is logged and ignored.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    candidates = []
    if path:
        candidates.append(path)
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path and env_path.strip():
        candidates.append(env_path.strip())
    candidates.extend(Constants.CONFIG_LOCATIONS)

    for candidate in candidates:
        full = os.path.expanduser(candidate)
        if not os.path.isfile(full):
            continue
        try:
            with open(full, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", full, exc)
            return {}
        if isinstance(data, dict):
            logger.debug("Loaded config from %s", full)
            return data
        logger.warning("Ignoring config %s: top level is not a mapping", full)
        return {}
    return {}


def apply_config(cfg: Dict[str, Any]) -> None:
    """Apply a loaded config mapping and environment overrides onto Constants."""
    registry = cfg.get("registry") if isinstance(cfg.get("registry"), dict) else {}
    http = cfg.get("http") if isinstance(cfg.get("http"), dict) else {}
    store = cfg.get("store") if isinstance(cfg.get("store"), dict) else {}

    if registry.get("portal_url"):
        Constants.PORTAL_URL = str(registry["portal_url"])
    if registry.get("remote_url"):
        Constants.REMOTE_URL = str(registry["remote_url"])
    if registry.get("user"):
        Constants.DEFAULT_USER = str(registry["user"])
    if http.get("timeout") is not None:
        Constants.REQUEST_TIMEOUT = int(http["timeout"])
    if http.get("retries") is not None:
        Constants.HTTP_RETRY_MAX = max(1, int(http["retries"]))
    if http.get("backoff") is not None:
        Constants.HTTP_RETRY_BASE_DELAY_SEC = float(http["backoff"])
    if store.get("vendor"):
        Constants.VENDOR = str(store["vendor"])

    portal = os.environ.get(Constants.ENV_PORTAL_URL)
    if portal and portal.strip():
        Constants.PORTAL_URL = portal.strip()
    remote = os.environ.get(Constants.ENV_REMOTE_URL)
    if remote and remote.strip():
        Constants.REMOTE_URL = remote.strip()
