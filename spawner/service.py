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

"""Provider dispatch and credential management."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from spawner import logger
from spawner.aws import AwsController
from spawner.azure import AzureController
from spawner.config import SpawnerConfig
from spawner.constants import AWS_LABEL, AZURE_LABEL, GCP_LABEL
from spawner.controller import Controller
from spawner.credentials import CredentialStore, credential_type
from spawner.errors import InvalidCredential, ProviderNotFound
from spawner.gcp import GcpController
from spawner.models import (
    ClusterDeleteRequest,
    ClusterDeleteResponse,
    ClusterRequest,
    ClusterResponse,
    ClusterSpec,
    ClusterStatusRequest,
    ClusterStatusResponse,
    CreateSnapshotAndDeleteRequest,
    CreateSnapshotAndDeleteResponse,
    CreateSnapshotRequest,
    CreateSnapshotResponse,
    CreateVolumeRequest,
    CreateVolumeResponse,
    DeleteVolumeRequest,
    DeleteVolumeResponse,
    GetClusterRequest,
    GetClustersRequest,
    GetClustersResponse,
    GetKubeConfigRequest,
    GetKubeConfigResponse,
    GetTokenRequest,
    GetTokenResponse,
    NodeDeleteRequest,
    NodeDeleteResponse,
    NodeSpawnRequest,
    NodeSpawnResponse,
    ReadCredentialRequest,
    ReadCredentialResponse,
    TagNodeInstanceRequest,
    TagNodeInstanceResponse,
    WriteCredentialRequest,
    WriteCredentialResponse,
)
from spawner.session import secrets_client_factory


def build_controllers(config: SpawnerConfig, store: CredentialStore) -> Mapping[str, Controller]:
    """Build the read-only provider -> engine table.

    Args:
        config: Spawner configuration shared by every engine.
        store: Credential store shared by every engine.

    Returns:
        Mapping from provider identifier to its engine.
    """
    return MappingProxyType({
        AWS_LABEL: AwsController(config, store),
        AZURE_LABEL: AzureController(config, store),
        GCP_LABEL: GcpController(config, store),
    })


class SpawnerService:
    """Routes each request to the engine of its provider.

    Example:
        ```python
        service = SpawnerService.from_config(SpawnerConfig())
        service.create_cluster(ClusterRequest(provider="aws", region="us-east-1"))
        ```
    """

    def __init__(
        self,
        controllers: Mapping[str, Controller],
        store: CredentialStore,
        config: SpawnerConfig,
    ) -> None:
        self._controllers = controllers
        self._store = store
        self._config = config

    @classmethod
    def from_config(cls, config: SpawnerConfig) -> SpawnerService:
        store = CredentialStore(secrets_client_factory(config))
        return cls(build_controllers(config, store), store, config)

    def controller(self, provider: str) -> Controller:
        """Resolve the engine for *provider*.

        Raises:
            ProviderNotFound: If *provider* is not a known provider.
        """
        try:
            return self._controllers[provider]
        except KeyError:
            raise ProviderNotFound(provider) from None

    # -- Dispatched operations --

    def create_cluster(self, request: ClusterRequest) -> ClusterResponse:
        return self.controller(request.provider).create_cluster(request)

    def get_cluster(self, request: GetClusterRequest) -> ClusterSpec:
        return self.controller(request.provider).get_cluster(request)

    def get_clusters(self, request: GetClustersRequest) -> GetClustersResponse:
        return self.controller(request.provider).get_clusters(request)

    def cluster_status(self, request: ClusterStatusRequest) -> ClusterStatusResponse:
        return self.controller(request.provider).cluster_status(request)

    def add_node(self, request: NodeSpawnRequest) -> NodeSpawnResponse:
        return self.controller(request.provider).add_node(request)

    def delete_cluster(self, request: ClusterDeleteRequest) -> ClusterDeleteResponse:
        return self.controller(request.provider).delete_cluster(request)

    def delete_node(self, request: NodeDeleteRequest) -> NodeDeleteResponse:
        return self.controller(request.provider).delete_node(request)

    def get_token(self, request: GetTokenRequest) -> GetTokenResponse:
        return self.controller(request.provider).get_token(request)

    def get_kube_config(self, request: GetKubeConfigRequest) -> GetKubeConfigResponse:
        return self.controller(request.provider).get_kube_config(request)

    def tag_node_instance(self, request: TagNodeInstanceRequest) -> TagNodeInstanceResponse:
        return self.controller(request.provider).tag_node_instance(request)

    def create_volume(self, request: CreateVolumeRequest) -> CreateVolumeResponse:
        return self.controller(request.provider).create_volume(request)

    def delete_volume(self, request: DeleteVolumeRequest) -> DeleteVolumeResponse:
        return self.controller(request.provider).delete_volume(request)

    def create_snapshot(self, request: CreateSnapshotRequest) -> CreateSnapshotResponse:
        return self.controller(request.provider).create_snapshot(request)

    def create_snapshot_and_delete(
        self, request: CreateSnapshotAndDeleteRequest
    ) -> CreateSnapshotAndDeleteResponse:
        return self.controller(request.provider).create_snapshot_and_delete(request)

    # -- Credentials --

    def write_credential(self, request: WriteCredentialRequest) -> WriteCredentialResponse:
        """Store the credentials of an account, replacing any existing record.

        Raises:
            InvalidCredential: If the provider is unknown, the payload is
                missing, or the payload is for another provider.
        """
        account = request.account
        provider = request.provider
        cred_type = credential_type(provider)
        if request.credential is None:
            raise InvalidCredential(f"{cred_type} credentials must be set for provider {provider}")
        if request.credential.provider != provider:
            raise InvalidCredential(
                f"{cred_type} credentials must be set for provider {provider}, "
                f"got {type(request.credential).__name__}"
            )

        cred = request.credential.model_copy(update={"name": account})
        try:
            updated = self._store.write(self._config.secret_host_region, account, provider, cred)
        except Exception:
            logger.error("failed to save credentials for account '%s'", account)
            raise
        logger.info("credentials written for account '%s', update=%s", account, updated)
        return WriteCredentialResponse(updated=updated)

    def read_credential(self, request: ReadCredentialRequest) -> ReadCredentialResponse:
        """Read the credentials stored for an account.

        Raises:
            CredentialNotFound: If nothing is stored for the account.
        """
        credential_type(request.provider)
        try:
            cred = self._store.read(self._config.secret_host_region, request.account, request.provider)
        except Exception:
            logger.error("failed to get the credentials for account '%s'", request.account)
            raise
        logger.debug("credentials found for account '%s', provider %s", request.account, request.provider)
        return ReadCredentialResponse(account=request.account, credential=cred)
