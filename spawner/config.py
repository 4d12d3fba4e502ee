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

"""Service configuration loaded from the environment."""

from __future__ import annotations

from botocore.config import Config as BotoConfig
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from spawner.constants import (
    DEFAULT_ACCOUNT,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_SECRET_HOST_REGION,
    DEFAULT_STATUS_POLL_ATTEMPTS,
    DEFAULT_STATUS_POLL_INTERVAL_SECONDS,
)


class SpawnerConfig(BaseSettings):
    """Spawner configuration, auto-loaded from SPAWNER_* env vars.

    Attributes:
        secret_host_region: Region of the secret backend that stores account credentials.
        default_account: Account name that selects the host identity instead of stored credentials.
        aws_profile: Named AWS profile for the host identity, or None for the default chain.
        connect_timeout: Seconds to wait for a vendor API connection.
        read_timeout: Seconds to wait for a vendor API response.
        status_poll_interval: Seconds between status polls when the CLI waits.
        status_poll_attempts: Maximum status polls when the CLI waits.
        log_level: Root logging level for the CLI.
    """

    model_config = SettingsConfigDict(env_prefix="SPAWNER_", extra="ignore")

    secret_host_region: str = DEFAULT_SECRET_HOST_REGION
    default_account: str = DEFAULT_ACCOUNT
    aws_profile: str | None = None
    connect_timeout: int = Field(default=DEFAULT_CONNECT_TIMEOUT, ge=1, le=600)
    read_timeout: int = Field(default=DEFAULT_READ_TIMEOUT, ge=1, le=600)
    status_poll_interval: int = Field(default=DEFAULT_STATUS_POLL_INTERVAL_SECONDS, ge=1)
    status_poll_attempts: int = Field(default=DEFAULT_STATUS_POLL_ATTEMPTS, ge=1)
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    def is_default_account(self, account_name: str | None) -> bool:
        """Whether *account_name* refers to the host identity."""
        return not account_name or account_name == self.default_account

    def boto_config(self) -> BotoConfig:
        """Client config carrying the request deadline, with botocore retries disabled."""
        return BotoConfig(
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            retries={"max_attempts": 1, "mode": "standard"},
        )
