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

"""Tests for IAM role provisioning."""

from __future__ import annotations

from unittest.mock import MagicMock, call

import pytest
from botocore.exceptions import ConnectTimeoutError

from spawner.constants import (
    EKS_ASSUME_ROLE_DOC,
    NODE_GROUP_ROLE_POLICIES,
)
from spawner.errors import VendorError
from spawner.iam import ensure_role, ensure_role_with_policies, get_role

ROLE = {"RoleName": "spawner-AWS-NodeGroupInstanceRole", "Arn": "arn:aws:iam::123:role/node"}


class TestGetRole:
    """Test role lookup."""

    def test_missing_role_is_none(self, client_error) -> None:
        """NoSuchEntity should read as an absent role."""
        iam = MagicMock()
        iam.get_role.side_effect = client_error("NoSuchEntity", "GetRole")

        assert get_role(iam, "r") is None

    def test_other_errors_raise(self, client_error) -> None:
        """Other lookup failures should raise VendorError with the code."""
        iam = MagicMock()
        iam.get_role.side_effect = client_error("AccessDenied", "GetRole")

        with pytest.raises(VendorError) as exc_info:
            get_role(iam, "r")
        assert exc_info.value.code == "AccessDenied"

    def test_connect_timeout_raises(self) -> None:
        """A connect timeout should raise VendorError, not read as an absent role."""
        iam = MagicMock()
        iam.get_role.side_effect = ConnectTimeoutError(endpoint_url="https://iam.amazonaws.com")

        with pytest.raises(VendorError) as exc_info:
            get_role(iam, "r")
        assert exc_info.value.code is None


class TestEnsureRole:
    """Test create-or-reuse."""

    def test_existing_role_is_reused(self) -> None:
        """An existing role should be returned without creating one."""
        iam = MagicMock()
        iam.get_role.return_value = {"Role": ROLE}

        role, created = ensure_role(iam, ROLE["RoleName"], "desc", EKS_ASSUME_ROLE_DOC)

        assert role == ROLE
        assert created is False
        iam.create_role.assert_not_called()

    def test_missing_role_is_created(self, client_error) -> None:
        """A missing role should be created with the trust document."""
        iam = MagicMock()
        iam.get_role.side_effect = client_error("NoSuchEntity", "GetRole")
        iam.create_role.return_value = {"Role": ROLE}

        role, created = ensure_role(iam, ROLE["RoleName"], "desc", EKS_ASSUME_ROLE_DOC)

        assert created is True
        assert role == ROLE
        iam.create_role.assert_called_once_with(
            RoleName=ROLE["RoleName"], Description="desc", AssumeRolePolicyDocument=EKS_ASSUME_ROLE_DOC
        )


class TestEnsureRoleWithPolicies:
    """Test policy attachment on new roles."""

    def test_new_role_gets_each_policy_once(self, client_error) -> None:
        """A new role should get every policy attached exactly once."""
        iam = MagicMock()
        iam.get_role.side_effect = client_error("NoSuchEntity", "GetRole")
        iam.create_role.return_value = {"Role": ROLE}

        ensure_role_with_policies(iam, ROLE["RoleName"], "desc", EKS_ASSUME_ROLE_DOC, NODE_GROUP_ROLE_POLICIES)

        assert iam.attach_role_policy.call_args_list == [
            call(RoleName=ROLE["RoleName"], PolicyArn=arn) for arn in NODE_GROUP_ROLE_POLICIES
        ]

    def test_existing_role_is_left_alone(self) -> None:
        """An existing role should not get policies attached."""
        iam = MagicMock()
        iam.get_role.return_value = {"Role": ROLE}

        role = ensure_role_with_policies(
            iam, ROLE["RoleName"], "desc", EKS_ASSUME_ROLE_DOC, NODE_GROUP_ROLE_POLICIES
        )

        assert role == ROLE
        iam.attach_role_policy.assert_not_called()

    def test_attach_failure_stops_without_rollback(self, client_error) -> None:
        """A failed attachment should stop further attachments and keep the role."""
        iam = MagicMock()
        iam.get_role.side_effect = client_error("NoSuchEntity", "GetRole")
        iam.create_role.return_value = {"Role": ROLE}
        iam.attach_role_policy.side_effect = [None, client_error("LimitExceeded", "AttachRolePolicy")]

        with pytest.raises(VendorError):
            ensure_role_with_policies(
                iam, ROLE["RoleName"], "desc", EKS_ASSUME_ROLE_DOC, NODE_GROUP_ROLE_POLICIES
            )

        assert iam.attach_role_policy.call_count == 2
        iam.delete_role.assert_not_called()
        iam.detach_role_policy.assert_not_called()
