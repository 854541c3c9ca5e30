"""Editor configuration loaded from YAML.

Configuration file location priority:
1. Explicit path passed to EditorConfigLoader
2. LINEEDIT_CONFIG environment variable
3. Standard location: ~/.lineedit/config.yml
4. Built-in defaults (if no config file found)

Example config file:
```yaml
context_lines: 3
omission_threshold: 5
color: false
backup: true
default_newline: "\\r\\n"
new_file_trailing_newline: true
```
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LINEEDIT_CONFIG"

# ===========================================================================
# Configuration Model
# ===========================================================================


class EditorConfig(BaseModel):
    """Tunable behaviour of the editor and its change reports."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    context_lines: int = Field(
        default=2,
        ge=0,
        le=50,
        description="Lines of leading/trailing context shown around each change",
    )
    omission_threshold: int = Field(
        default=5,
        ge=4,
        le=10000,
        description=(
            "Changed blocks longer than this show only their first 2 and last 2 lines "
            "with an omission marker in between"
        ),
    )
    color: bool = Field(
        default=False,
        description="Emit ANSI styling in change reports",
    )
    backup: bool = Field(
        default=False,
        description="Write a timestamped .bak copy before modifying a file",
    )
    default_newline: Literal["\n", "\r\n", "\r"] = Field(
        default="\n",
        description="Newline sequence for new files and files without any line break",
    )
    new_file_trailing_newline: bool = Field(
        default=True,
        description="Whether files created by the editor end with a newline",
    )
    detection_sample_bytes: int = Field(
        default=65536,
        ge=1024,
        description="Bytes read from the start of a file to detect encoding and newlines",
    )


# ===========================================================================
# Loader
# ===========================================================================


class EditorConfigLoader:
    """Loader for editor configuration from a YAML file.

    Usage:
        ```python
        loader = EditorConfigLoader()
        config = loader.load_config()
        ```

    The loaded config is cached; call load_config() once at startup.
    """

    def __init__(self, config_path: str | Path | None = None):
        """Initialize config loader with optional explicit path.

        Args:
            config_path: Explicit path to config file (optional).
                If not provided, uses environment variable or standard location.
        """
        self._config: EditorConfig | None = None
        self._explicit_path = Path(config_path) if config_path else None

    def get_config_path(self) -> Path | None:
        """Determine config file path using priority order.

        Returns:
            Path to config file, or None if file doesn't exist
        """
        if self._explicit_path:
            if self._explicit_path.exists():
                return self._explicit_path
            logger.warning(f"Explicit editor config path does not exist: {self._explicit_path}")
            return None

        env_path_str = os.getenv(CONFIG_ENV_VAR)
        if env_path_str:
            env_path = Path(env_path_str).expanduser()
            if env_path.exists():
                return env_path
            logger.warning(f"{CONFIG_ENV_VAR} path does not exist: {env_path}")
            return None

        standard_path = Path.home() / ".lineedit" / "config.yml"
        if standard_path.exists():
            return standard_path

        return None

    def load_config(self) -> EditorConfig:
        """Load and validate editor configuration.

        Returns:
            Validated EditorConfig (defaults if no config file found)

        Raises:
            ValueError: If the config file is not valid YAML or fails validation
        """
        if self._config is not None:
            return self._config

        config_path = self.get_config_path()

        if config_path is None:
            logger.info("No editor config file found. Using defaults.")
            self._config = EditorConfig()
            return self._config

        logger.info(f"Loading editor config from: {config_path}")

        try:
            with open(config_path, encoding="utf-8") as f:
                raw_config = yaml.safe_load(f)

            if raw_config is None:
                raw_config = {}
            if not isinstance(raw_config, dict):
                raise ValueError("Config file must contain a YAML dictionary")

            config = EditorConfig(**raw_config)
            logger.info(
                f"Loaded editor config: context_lines={config.context_lines}, "
                f"omission_threshold={config.omission_threshold}, backup={config.backup}"
            )
            self._config = config
            return config

        except (yaml.YAMLError, ValueError) as e:
            raise ValueError(f"Failed to load editor config from {config_path}: {e}") from e
