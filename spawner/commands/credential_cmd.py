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

"""Credential subcommands (write, read)."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from spawner import console
from spawner.commands._common import get_service, load_yaml_file
from spawner.credentials import parse_credentials
from spawner.models import ReadCredentialRequest, WriteCredentialRequest

app = typer.Typer(help="Manage stored account credentials.")

ACCOUNT_OPTION = typer.Option(..., "--account", "-a", help="Account name")
PROVIDER_OPTION = typer.Option(..., "--provider", "-p", help="Cloud provider (aws, azure)")


@app.command()
def write(
    ctx: typer.Context,
    account: str = ACCOUNT_OPTION,
    provider: str = PROVIDER_OPTION,
    access_key_id: str | None = typer.Option(None, "--access-key-id", help="AWS access key id"),
    secret_access_key: str | None = typer.Option(
        None, "--secret-access-key", help="AWS secret access key"),
    session_token: str | None = typer.Option(None, "--session-token", help="AWS session token"),
    subscription_id: str | None = typer.Option(None, "--subscription-id", help="Azure subscription id"),
    tenant_id: str | None = typer.Option(None, "--tenant-id", help="Azure tenant id"),
    client_id: str | None = typer.Option(None, "--client-id", help="Azure client id"),
    client_secret: str | None = typer.Option(
        None, "--client-secret", help="Azure client secret"),
    resource_group: str | None = typer.Option(None, "--resource-group", help="Azure resource group"),
    from_file: Path | None = typer.Option(
        None, "--from-file", "-f", exists=True, dir_okay=False, help="YAML file with credential fields"),
) -> None:
    """Store credentials for an account, replacing any existing record."""
    payload = load_yaml_file(from_file)
    flags = {
        "access_key_id": access_key_id,
        "secret_access_key": secret_access_key,
        "session_token": session_token,
        "subscription_id": subscription_id,
        "tenant_id": tenant_id,
        "client_id": client_id,
        "client_secret": client_secret,
        "resource_group": resource_group,
    }
    payload.update({key: value for key, value in flags.items() if value is not None})
    payload.setdefault("provider", provider)

    response = get_service(ctx).write_credential(WriteCredentialRequest(
        account=account, provider=provider, credential=parse_credentials(payload)))
    verb = "updated" if response.updated else "created"
    console.print(f"[green]\u2705 Credentials {verb} for account '{account}'[/green]")


@app.command()
def read(
    ctx: typer.Context,
    account: str = ACCOUNT_OPTION,
    provider: str = PROVIDER_OPTION,
    show_secrets: bool = typer.Option(False, "--show-secrets", help="Print secret values in clear text"),
) -> None:
    """Show the credentials stored for an account."""
    response = get_service(ctx).read_credential(ReadCredentialRequest(account=account, provider=provider))
    fields = response.credential.reveal() if show_secrets else response.credential.model_dump()

    table = Table(title=f"Credentials for {response.account}")
    table.add_column("Field")
    table.add_column("Value")
    for key, value in fields.items():
        table.add_row(key, str(value))
    console.print(table)
