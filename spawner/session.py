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

"""Per-request vendor sessions and the clients built from them."""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Any

import boto3
from azure.identity import ClientSecretCredential
from azure.mgmt.containerservice import ContainerServiceClient
from botocore.signers import RequestSigner
from kubernetes import client as k8s_client

from spawner import logger
from spawner.config import SpawnerConfig
from spawner.constants import (
    AWS_LABEL,
    AZURE_LABEL,
    EKS_CLUSTER_ID_HEADER,
    EKS_TOKEN_EXPIRES_SECONDS,
    EKS_TOKEN_PREFIX,
)
from spawner.credentials import AwsCredential, AzureCredential
from spawner.errors import BOTO_ERRORS, ClusterUnreachable, InvalidCredential, VendorError
from spawner.kube import KubeConfig, core_client, kubeconfig_dict

if TYPE_CHECKING:
    from spawner.credentials import CredentialStore


def secrets_client_factory(config: SpawnerConfig):
    """Build the region -> Secrets Manager client factory for the credential store.

    The store always runs under the host identity.
    """
    session = boto3.Session(profile_name=config.aws_profile)

    def _factory(region: str) -> Any:
        return session.client("secretsmanager", region_name=region, config=config.boto_config())

    return _factory


# ============================================================================
# AWS
# ============================================================================

class AwsSession:
    """Region-bound AWS clients for one request."""

    def __init__(self, boto_session: boto3.Session, region: str, config: SpawnerConfig) -> None:
        self._boto = boto_session
        self.region = region
        self._config = config
        self._clients: dict[str, Any] = {}

    @classmethod
    def open(
        cls,
        config: SpawnerConfig,
        region: str,
        account_name: str,
        store: CredentialStore | None = None,
    ) -> AwsSession:
        """Open a session for an account in a region.

        The default account uses the host identity. Any other account
        uses the AWS credentials stored for it.

        Args:
            config: Spawner configuration.
            region: AWS region the clients are bound to.
            account_name: Account to act as.
            store: Credential store, required for non-default accounts.

        Returns:
            A new AwsSession.

        Raises:
            CredentialNotFound: If no credentials are stored for the account.
            InvalidCredential: If the stored credentials are not AWS credentials.
        """
        if config.is_default_account(account_name):
            return cls(boto3.Session(region_name=region, profile_name=config.aws_profile), region, config)

        if store is None:
            raise InvalidCredential(f"no credential store to load account '{account_name}'")
        cred = store.read(config.secret_host_region, account_name, AWS_LABEL)
        match cred:
            case AwsCredential():
                logger.debug("using stored credentials for account '%s'", account_name)
                boto_session = boto3.Session(
                    aws_access_key_id=cred.access_key_id,
                    aws_secret_access_key=cred.secret_access_key.get_secret_value(),
                    aws_session_token=cred.session_token.get_secret_value() or None,
                    region_name=region,
                )
            case _:
                raise InvalidCredential(f"account '{account_name}' has no AWS credentials")
        return cls(boto_session, region, config)

    def _client(self, service: str) -> Any:
        if service not in self._clients:
            self._clients[service] = self._boto.client(
                service, region_name=self.region, config=self._config.boto_config()
            )
        return self._clients[service]

    def eks_client(self) -> Any:
        return self._client("eks")

    def iam_client(self) -> Any:
        return self._client("iam")

    def ec2_client(self) -> Any:
        return self._client("ec2")

    def eks_token(self, cluster_name: str) -> str:
        """Create a bearer token for an EKS cluster's API server.

        The token is a presigned STS GetCallerIdentity URL bound to the
        cluster name through the ``x-k8s-aws-id`` header.

        Args:
            cluster_name: EKS cluster name.

        Returns:
            Token string prefixed with ``k8s-aws-v1.``.

        Raises:
            VendorError: If the session has no credentials to sign with.
        """
        sts = self._client("sts")
        signer = RequestSigner(
            sts.meta.service_model.service_id,
            self.region,
            "sts",
            "v4",
            self._boto.get_credentials(),
            self._boto.events,
        )
        params = {
            "method": "GET",
            "url": f"https://sts.{self.region}.amazonaws.com/?Action=GetCallerIdentity&Version=2011-06-15",
            "body": {},
            "headers": {EKS_CLUSTER_ID_HEADER: cluster_name},
            "context": {},
        }
        try:
            signed_url = signer.generate_presigned_url(
                params,
                region_name=self.region,
                expires_in=EKS_TOKEN_EXPIRES_SECONDS,
                operation_name="",
            )
        except BOTO_ERRORS as err:
            raise VendorError(f"sign token for cluster '{cluster_name}'", str(err)) from err
        encoded = base64.urlsafe_b64encode(signed_url.encode("utf-8")).decode("utf-8")
        return EKS_TOKEN_PREFIX + encoded.rstrip("=")

    def kube_config(self, cluster: dict[str, Any]) -> KubeConfig:
        """Build the API endpoint, CA, and token of a described EKS cluster.

        Args:
            cluster: The ``cluster`` object returned by DescribeCluster.

        Raises:
            ClusterUnreachable: If the cluster has no endpoint or CA yet.
        """
        name = cluster.get("name", "")
        endpoint = cluster.get("endpoint")
        ca_data = (cluster.get("certificateAuthority") or {}).get("data")
        if not endpoint or not ca_data:
            raise ClusterUnreachable(name, f"no control-plane endpoint yet (status {cluster.get('status')})")
        return KubeConfig(
            cluster_name=name,
            endpoint=endpoint,
            ca_data=ca_data,
            token=self.eks_token(name),
        )

    def kubernetes_client(self, cluster: dict[str, Any]) -> k8s_client.CoreV1Api:
        """Create a CoreV1 client for a described EKS cluster.

        Raises:
            ClusterUnreachable: If the cluster has no endpoint or CA yet.
        """
        return core_client(kubeconfig_dict(self.kube_config(cluster)))


# ============================================================================
# Azure
# ============================================================================

class AzureSession:
    """AKS management client for one request."""

    def __init__(self, cred: AzureCredential, region: str) -> None:
        self.region = region
        self.resource_group = cred.resource_group
        self._client = ContainerServiceClient(
            ClientSecretCredential(
                tenant_id=cred.tenant_id,
                client_id=cred.client_id,
                client_secret=cred.client_secret.get_secret_value(),
            ),
            cred.subscription_id,
        )

    @classmethod
    def open(
        cls,
        config: SpawnerConfig,
        region: str,
        account_name: str,
        store: CredentialStore | None = None,
    ) -> AzureSession:
        """Open a session with the Azure credentials stored for an account.

        Raises:
            CredentialNotFound: If no credentials are stored for the account.
            InvalidCredential: If the stored credentials are not Azure credentials.
        """
        if store is None:
            raise InvalidCredential(f"no credential store to load account '{account_name}'")
        account = account_name or config.default_account
        cred = store.read(config.secret_host_region, account, AZURE_LABEL)
        match cred:
            case AzureCredential():
                return cls(cred, region)
            case _:
                raise InvalidCredential(f"account '{account}' has no Azure credentials")

    def container_client(self) -> ContainerServiceClient:
        return self._client
