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

"""
cli.py - Command-line front end for the spawner service.

Subcommands:
    cluster     Create, inspect, and delete clusters
    node        Add, delete, and tag node groups
    volume      Create and delete volumes and snapshots
    credential  Write and read stored account credentials

Examples:
    # Create an EKS cluster in the host account and wait for it
    spawner cluster create --provider aws --region us-east-1 --wait

    # Add a GPU node group to it
    spawner node add --provider aws --region us-east-1 --cluster aws-us-east-1 \\
        --name gpu-pool --instance-type p3.2xlarge --gpu

    # Store credentials for another account
    spawner credential write --provider aws --account acme \\
        --access-key-id AKIA... --secret-access-key ...

For detailed usage information, run: spawner --help
"""

from __future__ import annotations

import logging
import sys

import typer

from spawner import console
from spawner.commands import cluster_cmd, credential_cmd, node_cmd, volume_cmd
from spawner.config import SpawnerConfig
from spawner.errors import SpawnerError

app = typer.Typer(
    help="Multi-cloud Kubernetes cluster and node group control plane.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    ctx: typer.Context,
    log_level: str | None = typer.Option(
        None, "--log-level", help="Logging level (overrides SPAWNER_LOG_LEVEL)"),
    secret_host_region: str | None = typer.Option(
        None, "--secret-host-region", help="Region of the credential store"),
) -> None:
    """Load configuration and initialize logging for all subcommands."""
    config = SpawnerConfig()
    overrides: dict = {}
    if log_level is not None:
        overrides["log_level"] = log_level.upper()
    if secret_host_region is not None:
        overrides["secret_host_region"] = secret_host_region
    if overrides:
        config = config.model_copy(update=overrides)

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    ctx.obj = {"config": config, "service": None}


app.add_typer(cluster_cmd.app, name="cluster")
app.add_typer(node_cmd.app, name="node")
app.add_typer(volume_cmd.app, name="volume")
app.add_typer(credential_cmd.app, name="credential")


def main() -> None:
    try:
        app()
    except (SpawnerError, RuntimeError) as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
