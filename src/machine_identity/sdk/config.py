# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""Configuration for machine identity detection.

Configuration precedence (highest to lowest):
1. Code arguments (explicit values passed to IdentityConfig)
2. Environment variables (MACHINE_IDENTITY_*)
3. YAML config file (machine_identity.yaml or specified path)
4. Built-in defaults
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_ON_PREM_CONFIG_PATH = "/opt/vlzconnector/machine_info.json"
DEFAULT_AZURE_FALLBACK_PATH = "azure_instance.json"
DEFAULT_KUBECONFIG_PATH = "/var/lib/kubelet/kubeconfig"
DEFAULT_AWS_METADATA_URL = "http://169.254.169.254/latest/"
DEFAULT_AZURE_METADATA_URL = "http://169.254.169.254/metadata/"


@dataclass
class IdentityConfig:
    """Settings shared by the selector and every provider.

    Example::

        >>> config = IdentityConfig(max_attempts=5, timeout_seconds=2.0)

        >>> # Or load from YAML
        >>> config = IdentityConfig.from_yaml("config/machine_identity.yaml")
    """

    # Explicit provider name ("AWS", "Azure", "OnPrem/Config", "OnPrem/ENV");
    # None means probe every provider in order.
    provider: Optional[str] = None

    # Metadata access
    max_attempts: Optional[int] = None
    token_ttl_seconds: Optional[int] = None
    timeout_seconds: Optional[float] = None
    aws_metadata_url: str = DEFAULT_AWS_METADATA_URL
    azure_metadata_url: str = DEFAULT_AZURE_METADATA_URL

    # Local sources
    on_prem_config_path: Optional[str] = None
    azure_fallback_path: str = DEFAULT_AZURE_FALLBACK_PATH
    kubeconfig_path: str = DEFAULT_KUBECONFIG_PATH

    # Config file path (for tracking where config was loaded from)
    _config_file: Optional[str] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Apply environment variable defaults."""
        if self.provider is None:
            self.provider = os.getenv("MACHINE_IDENTITY_PROVIDER") or None

        if self.max_attempts is None:
            self.max_attempts = int(os.getenv("MACHINE_IDENTITY_MAX_ATTEMPTS", "3"))

        if self.token_ttl_seconds is None:
            self.token_ttl_seconds = int(os.getenv("MACHINE_IDENTITY_TOKEN_TTL_SECONDS", str(6 * 3600)))

        if self.timeout_seconds is None:
            self.timeout_seconds = float(os.getenv("MACHINE_IDENTITY_TIMEOUT_SECONDS", "1.0"))

        if self.on_prem_config_path is None:
            self.on_prem_config_path = os.getenv("MACHINE_IDENTITY_ON_PREM_CONFIG", DEFAULT_ON_PREM_CONFIG_PATH)

        if self.max_attempts < 1:
            raise ValueError("max_attempts must be greater than zero")
        if self.token_ttl_seconds < 1:
            raise ValueError("token_ttl_seconds must be greater than zero")

    # ------------------------------------------------------------------
    # YAML loading
    # ------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, path: Optional[str] = None) -> IdentityConfig:
        """Load configuration from a YAML file.

        Supports environment variable interpolation using ``${VAR_NAME}`` syntax.

        Args:
            path: Path to YAML config file.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If YAML is malformed.
        """
        if path is None:
            raise FileNotFoundError("No config file path provided")

        resolved = Path(path)
        if not resolved.exists():
            raise FileNotFoundError(f"Config file not found: {resolved}")

        import yaml

        with open(resolved) as fh:
            raw_content = fh.read()

        content = _interpolate_env_vars(raw_content)

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {resolved}: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Invalid YAML in {resolved}: expected a mapping")

        return cls._from_dict(data, config_file=str(resolved))

    @classmethod
    def from_file_or_env(cls, path: Optional[str] = None) -> IdentityConfig:
        """Load config from file if exists, otherwise use environment variables.

        Search order:
        1. Explicit *path* argument
        2. ``MACHINE_IDENTITY_CONFIG_FILE`` env var
        3. ``./machine_identity.yaml``
        4. ``./config/machine_identity.yaml``
        5. Falls back to env-only config
        """
        search_paths: List[Path] = []

        if path:
            search_paths.append(Path(path))

        env_path = os.getenv("MACHINE_IDENTITY_CONFIG_FILE")
        if env_path:
            search_paths.append(Path(env_path))

        search_paths.extend(
            [
                Path("machine_identity.yaml"),
                Path("machine_identity.yml"),
                Path("config/machine_identity.yaml"),
                Path("config/machine_identity.yml"),
            ]
        )

        for candidate in search_paths:
            if candidate.exists():
                logger.info("Loading config from: %s", candidate)
                return cls.from_yaml(str(candidate))

        logger.debug("No config file found, using environment variables only")
        return cls()

    @classmethod
    def _from_dict(
        cls,
        data: Dict[str, Any],
        config_file: Optional[str] = None,
    ) -> IdentityConfig:
        """Create config from dictionary (parsed YAML)."""
        metadata = data.get("metadata") or {}
        aws = data.get("aws") or {}
        azure = data.get("azure") or {}
        on_prem = data.get("on_prem") or {}

        return cls(
            provider=data.get("provider"),
            max_attempts=metadata.get("max_attempts"),
            token_ttl_seconds=aws.get("token_ttl_seconds"),
            timeout_seconds=metadata.get("timeout_seconds"),
            aws_metadata_url=aws.get("metadata_url", DEFAULT_AWS_METADATA_URL),
            azure_metadata_url=azure.get("metadata_url", DEFAULT_AZURE_METADATA_URL),
            on_prem_config_path=on_prem.get("config_path"),
            azure_fallback_path=azure.get("fallback_path", DEFAULT_AZURE_FALLBACK_PATH),
            kubeconfig_path=aws.get("kubeconfig_path", DEFAULT_KUBECONFIG_PATH),
            _config_file=config_file,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary."""
        return {
            "provider": self.provider,
            "metadata": {
                "max_attempts": self.max_attempts,
                "timeout_seconds": self.timeout_seconds,
            },
            "aws": {
                "metadata_url": self.aws_metadata_url,
                "token_ttl_seconds": self.token_ttl_seconds,
                "kubeconfig_path": self.kubeconfig_path,
            },
            "azure": {
                "metadata_url": self.azure_metadata_url,
                "fallback_path": self.azure_fallback_path,
            },
            "on_prem": {
                "config_path": self.on_prem_config_path,
            },
        }


def _interpolate_env_vars(content: str) -> str:
    """Interpolate ``${VAR_NAME}`` and ``${VAR_NAME:-default}`` in *content*."""
    pattern = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")

    def _replace(match: re.Match) -> str:  # type: ignore[type-arg]
        var_name = match.group(1)
        default = match.group(2)
        value = os.getenv(var_name)
        if value is not None:
            return value
        if default is not None:
            return default
        return match.group(0)

    return pattern.sub(_replace, content)
