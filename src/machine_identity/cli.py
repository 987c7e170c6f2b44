# SPDX-FileCopyrightText: 2026 The Machine Identity Authors
# SPDX-License-Identifier: Apache-2.0

"""``machine-identity`` command: detect and print this machine's identity."""

from __future__ import annotations

import json
import logging
from typing import Optional

import click

from machine_identity.errors import MachineIdentityError
from machine_identity.models.provider_kind import ProviderKind
from machine_identity.sdk.config import IdentityConfig
from machine_identity.sdk.selector import DetectionContext

logger = logging.getLogger(__name__)


class DefaultOpt(click.Option):
    def __init__(self, *args, **kwargs):
        kwargs["show_default"] = True
        super().__init__(*args, **kwargs)


@click.command()
@click.option(
    "--provider",
    default=None,
    help="Only try this provider (" + ", ".join(kind.value for kind in ProviderKind) + ").",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML config file (default: search machine_identity.yaml, then env vars).",
)
@click.option("--json", "as_json", is_flag=True, help="Print the identity as JSON.")
@click.option(
    "--log-level",
    cls=DefaultOpt,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
)
def main(provider: Optional[str], config_file: Optional[str], as_json: bool, log_level: str) -> None:
    """Detect the environment this machine runs in and print its identity."""
    logging.basicConfig(level=getattr(logging, log_level.upper()))

    try:
        if config_file is not None:
            config = IdentityConfig.from_yaml(config_file)
        else:
            config = IdentityConfig.from_file_or_env()
        if provider is not None:
            config.provider = provider
        logger.debug("Effective configuration: %s", json.dumps(config.to_dict()))

        selected = DetectionContext(config).require_provider()
        info = selected.get_machine_info()
    except (MachineIdentityError, FileNotFoundError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    if as_json:
        click.echo(json.dumps({"provider": selected.name, **info.to_dict()}, indent=2))
    else:
        click.echo(f"Provider: {selected.name}")
        click.echo(info.to_text())
