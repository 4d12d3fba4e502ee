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

"""IAM role provisioning with create-or-reuse semantics."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from spawner import logger
from spawner.constants import ERR_CODE_IAM_NO_SUCH_ENTITY
from spawner.errors import BOTO_ERRORS, VendorError, client_error_code


def get_role(iam: Any, name: str) -> dict[str, Any] | None:
    """Look up a role by name.

    Args:
        iam: boto3 IAM client.
        name: Role name.

    Returns:
        The role, or None if it does not exist.

    Raises:
        VendorError: If the lookup fails for any other reason.
    """
    try:
        return iam.get_role(RoleName=name)["Role"]
    except BOTO_ERRORS as err:
        if client_error_code(err) == ERR_CODE_IAM_NO_SUCH_ENTITY:
            return None
        raise VendorError(f"get role '{name}'", str(err), code=client_error_code(err)) from err


def ensure_role(iam: Any, name: str, description: str, trust_doc: str) -> tuple[dict[str, Any], bool]:
    """Return the named role, creating it with *trust_doc* if absent.

    An existing role is returned as is; its trust policy and attached
    policies are never touched.

    Args:
        iam: boto3 IAM client.
        name: Role name.
        description: Description used when the role is created.
        trust_doc: Trust policy document used when the role is created.

    Returns:
        Tuple of (role, was_created).

    Raises:
        VendorError: If the lookup or the creation fails.
    """
    role = get_role(iam, name)
    if role is not None:
        logger.debug("found existing role '%s'", name)
        return role, False

    logger.info("role '%s' not found, creating", name)
    try:
        role = iam.create_role(
            RoleName=name,
            Description=description,
            AssumeRolePolicyDocument=trust_doc,
        )["Role"]
    except BOTO_ERRORS as err:
        raise VendorError(f"create role '{name}'", str(err), code=client_error_code(err)) from err
    return role, True


def attach_policy(iam: Any, role_name: str, policy_arn: str) -> None:
    """Attach a managed policy to a role.

    Raises:
        VendorError: If the attachment fails.
    """
    try:
        iam.attach_role_policy(RoleName=role_name, PolicyArn=policy_arn)
    except BOTO_ERRORS as err:
        raise VendorError(
            f"attach policy '{policy_arn}' to role '{role_name}'", str(err), code=client_error_code(err)
        ) from err
    logger.debug("attached policy '%s' to role '%s'", policy_arn, role_name)


def ensure_role_with_policies(
    iam: Any, name: str, description: str, trust_doc: str, policy_arns: Iterable[str]
) -> dict[str, Any]:
    """Ensure a role exists, attaching *policy_arns* only if it was just created.

    Attachment stops at the first failure. The role is left with the
    policies attached so far; nothing is rolled back.

    Args:
        iam: boto3 IAM client.
        name: Role name.
        description: Description used when the role is created.
        trust_doc: Trust policy document used when the role is created.
        policy_arns: Managed policies to attach to a new role.

    Returns:
        The role.

    Raises:
        VendorError: If the role cannot be found or created, or an attachment fails.
    """
    role, created = ensure_role(iam, name, description, trust_doc)
    if not created:
        return role

    for policy_arn in policy_arns:
        try:
            attach_policy(iam, role["RoleName"], policy_arn)
        except VendorError:
            logger.error("failed to attach policy '%s' to new role '%s'; role left partially configured",
                         policy_arn, name)
            raise
    return role
