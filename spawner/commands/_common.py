# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Options and helpers shared by the subcommands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
import yaml

from spawner.config import SpawnerConfig
from spawner.service import SpawnerService

PROVIDER_OPTION = typer.Option(..., "--provider", "-p", help="Cloud provider (aws, azure, gcp)")
REGION_OPTION = typer.Option(..., "--region", "-r", help="Vendor region")
ACCOUNT_OPTION = typer.Option("", "--account", "-a", help="Account name, empty for the host account")
CLUSTER_OPTION = typer.Option(..., "--cluster", "-c", help="Cluster name")
LABEL_OPTION = typer.Option(None, "--label", "-l", help="Label as key=value, repeatable")


def get_config(ctx: typer.Context) -> SpawnerConfig:
    return ctx.obj["config"]


def get_service(ctx: typer.Context) -> SpawnerService:
    """Return the service for this invocation, building it on first use."""
    if ctx.obj.get("service") is None:
        ctx.obj["service"] = SpawnerService.from_config(get_config(ctx))
    return ctx.obj["service"]


def parse_labels(values: list[str] | None) -> dict[str, str]:
    """Parse repeated ``key=value`` options into a label mapping.

    Raises:
        typer.BadParameter: If an entry has no ``=`` or an empty key.
    """
    labels: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected key=value, got '{item}'", param_hint="--label")
        labels[key.strip()] = value.strip()
    return labels


def load_yaml_file(path: Path | None) -> dict[str, Any]:
    """Load a YAML mapping from *path*, or return an empty mapping when unset."""
    if path is None:
        return {}
    with path.open() as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise typer.BadParameter(f"{path} must contain a mapping", param_hint="--from-file")
    return data
