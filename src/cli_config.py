"""CLI configuration: logging setup and config-file overrides.

Extracted from aurora_conan.py to keep the entrypoint slim.
"""

from __future__ import annotations

import logging

from constants import Constants, _load_yaml_config, apply_config
from common.logging_utils import configure_logging

logger = logging.getLogger(__name__)


def setup_logging(args) -> None:
    """Configure logging from --loglevel/--logfile, honoring the env default."""
    configure_logging(level=getattr(args, "LOG_LEVEL", None), log_file=getattr(args, "LOG_FILE", None))


def apply_config_overrides(args) -> None:
    """Load the YAML config (explicit path or default locations) into Constants."""
    cfg = _load_yaml_config(getattr(args, "CONFIG", None))
    apply_config(cfg)
    logger.debug("Registry portal %s, remote %s", Constants.PORTAL_URL, Constants.REMOTE_URL)
