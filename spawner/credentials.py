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

"""Vendor credentials and the secret-backed credential store.

Credentials are a tagged union with one variant per provider. The
``provider`` field is the tag; every consumer matches on the variant
and rejects anything else with InvalidCredential.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from spawner import logger
from spawner.constants import (
    AWS_LABEL,
    AZURE_LABEL,
    ERR_CODE_RESOURCE_NOT_FOUND,
    SECRET_NAME_FORMAT,
)
from spawner.errors import BOTO_ERRORS, CredentialNotFound, InvalidCredential, VendorError, client_error_code


class _Credential(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def reveal(self) -> dict[str, str]:
        """Dump the credential with secret values in clear text, for storage only."""
        data = self.model_dump()
        return {
            key: value.get_secret_value() if isinstance(value, SecretStr) else value
            for key, value in data.items()
        }


class AwsCredential(_Credential):
    """AWS access key credentials.

    Attributes:
        name: Account name the credentials belong to.
        access_key_id: AWS access key id.
        secret_access_key: AWS secret access key.
        session_token: Optional STS session token.
    """

    provider: Literal["aws"] = AWS_LABEL
    name: str = ""
    access_key_id: str
    secret_access_key: SecretStr
    session_token: SecretStr = SecretStr("")


class AzureCredential(_Credential):
    """Azure service principal credentials.

    Attributes:
        name: Account name the credentials belong to.
        subscription_id: Azure subscription id.
        tenant_id: Azure AD tenant id.
        client_id: Service principal application id.
        client_secret: Service principal secret.
        resource_group: Resource group that holds the managed clusters.
    """

    provider: Literal["azure"] = AZURE_LABEL
    name: str = ""
    subscription_id: str
    tenant_id: str
    client_id: str
    client_secret: SecretStr
    resource_group: str


Credentials = Annotated[Union[AwsCredential, AzureCredential], Field(discriminator="provider")]

_CREDENTIALS_ADAPTER: TypeAdapter[Credentials] = TypeAdapter(Credentials)


def parse_credentials(payload: dict[str, Any]) -> Credentials:
    """Validate a raw payload into the matching credential variant.

    Raises:
        InvalidCredential: If the payload matches no variant.
    """
    try:
        return _CREDENTIALS_ADAPTER.validate_python(payload)
    except PydanticValidationError as err:
        raise InvalidCredential(f"invalid credential payload: {err.error_count()} validation error(s)") from err


def credential_type(provider: str) -> str:
    """Human-readable credential variant name for *provider*."""
    match provider:
        case "aws":
            return AwsCredential.__name__
        case "azure":
            return AzureCredential.__name__
        case _:
            raise InvalidCredential(f"invalid provider '{provider}'")


# ============================================================================
# Credential store
# ============================================================================

class CredentialStore:
    """Read and write credentials in a region-scoped AWS Secrets Manager.

    Records are keyed by (region, account, provider). A write replaces
    the whole record; nothing is merged or versioned by this store.
    """

    def __init__(self, client_factory: Callable[[str], Any]) -> None:
        """Initialize the store.

        Args:
            client_factory: Returns a Secrets Manager client for a region.
        """
        self._client_factory = client_factory

    @staticmethod
    def secret_name(account: str, provider: str) -> str:
        return SECRET_NAME_FORMAT.format(account=account, provider=provider)

    def read(self, region: str, account: str, provider: str) -> Credentials:
        """Read the credentials stored for an account and provider.

        Args:
            region: Region of the secret backend.
            account: Account name.
            provider: Provider identifier.

        Returns:
            The stored credential variant.

        Raises:
            CredentialNotFound: If nothing is stored under the key.
            InvalidCredential: If the stored record is not a *provider* credential.
            VendorError: If the secret backend call fails.
        """
        client = self._client_factory(region)
        secret_id = self.secret_name(account, provider)
        try:
            out = client.get_secret_value(SecretId=secret_id)
        except BOTO_ERRORS as err:
            if client_error_code(err) == ERR_CODE_RESOURCE_NOT_FOUND:
                raise CredentialNotFound(region, account, provider) from err
            raise VendorError("read credentials", str(err), code=client_error_code(err)) from err

        try:
            payload = json.loads(out["SecretString"])
        except (KeyError, json.JSONDecodeError) as err:
            raise InvalidCredential(f"stored credentials for account '{account}' are not valid JSON") from err

        cred = parse_credentials(payload)
        if cred.provider != provider:
            raise InvalidCredential(
                f"stored credentials for account '{account}' are {cred.provider}, expected {provider}"
            )
        return cred

    def write(self, region: str, account: str, provider: str, cred: Credentials) -> bool:
        """Create or replace the credentials for an account and provider.

        Args:
            region: Region of the secret backend.
            account: Account name.
            provider: Provider identifier; must match the credential variant.
            cred: Credentials to store.

        Returns:
            True if an existing record was replaced, False if one was created.

        Raises:
            InvalidCredential: If *cred* is not a *provider* credential.
            VendorError: If the secret backend call fails.
        """
        match cred:
            case AwsCredential() | AzureCredential() if cred.provider == provider:
                pass
            case AwsCredential() | AzureCredential():
                raise InvalidCredential(
                    f"{type(cred).__name__} cannot be stored for provider '{provider}'"
                )
            case _:
                raise InvalidCredential(f"unsupported credential type {type(cred).__name__}")

        client = self._client_factory(region)
        secret_id = self.secret_name(account, provider)
        secret_string = json.dumps(cred.reveal())
        try:
            client.put_secret_value(SecretId=secret_id, SecretString=secret_string)
            logger.debug("replaced %s credentials for account '%s'", provider, account)
            return True
        except BOTO_ERRORS as err:
            if client_error_code(err) != ERR_CODE_RESOURCE_NOT_FOUND:
                raise VendorError("write credentials", str(err), code=client_error_code(err)) from err

        try:
            client.create_secret(
                Name=secret_id,
                SecretString=secret_string,
                Description=f"{provider} credentials for account {account}",
            )
        except BOTO_ERRORS as err:
            raise VendorError("write credentials", str(err), code=client_error_code(err)) from err
        logger.debug("created %s credentials for account '%s'", provider, account)
        return False
