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

"""Tests for configuration loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from spawner.config import SpawnerConfig


class TestSpawnerConfig:
    """Test SPAWNER_* settings."""

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """SPAWNER_* variables should override defaults."""
        monkeypatch.setenv("SPAWNER_SECRET_HOST_REGION", "eu-west-1")
        monkeypatch.setenv("SPAWNER_READ_TIMEOUT", "30")

        config = SpawnerConfig()

        assert config.secret_host_region == "eu-west-1"
        assert config.read_timeout == 30

    def test_rejects_bad_log_level(self) -> None:
        """Unknown log levels should fail validation."""
        with pytest.raises(ValidationError):
            SpawnerConfig(log_level="LOUD")

    def test_default_account(self) -> None:
        """Empty and configured default names should mean the host identity."""
        config = SpawnerConfig(default_account="host")

        assert config.is_default_account("")
        assert config.is_default_account("host")
        assert not config.is_default_account("acme")

    def test_boto_config_disables_retries(self) -> None:
        """Vendor clients should make a single attempt within the configured timeouts."""
        boto_config = SpawnerConfig(connect_timeout=5, read_timeout=20).boto_config()

        assert boto_config.connect_timeout == 5
        assert boto_config.read_timeout == 20
        assert boto_config.retries["max_attempts"] == 1
