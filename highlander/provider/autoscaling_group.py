# Copyright 2026 Firefly Software Solutions Inc
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

"""
AutoScalingGroup membership and leader election.

Members of an EC2 Auto Scaling group are the running instances carrying the
group's aws:autoscaling:groupName tag. The leader is the oldest of them:
members are ordered by launch time, ties broken by instance ID, and the
first one wins.

There is no lock or lease involved. Every caller that reads the same EC2
state computes the same leader, and nothing more is promised: the leader
may be gone by the time the caller acts on the answer.

Example:
    >>> options = AutoScalingGroupOptions(configure_from_self=True)
    >>> group = await AutoScalingGroup.from_options(options)
    >>> leader = await group.get_leader()
    >>> print(leader.get_id(), leader.get_name())
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError

from highlander.aws.client import AWS
from highlander.aws.ec2 import Ec2Client
from highlander.aws.metadata import MetadataClient
from highlander.aws.models import IdentityDocument, Instance, InstanceStateName, new_filter
from highlander.aws.tags import ASG_TAG_NAME, NAME_TAG, tag_value
from highlander.exceptions import (
    BackendError,
    ConfigurationError,
    EmptyMemberError,
    NoMembersError,
    TagNotFoundError,
    UnsupportedAttributeError,
)
from highlander.provider.config import AutoScalingGroupOptions
from highlander.utils.logger import logger


class MemberAttribute(str, Enum):
    """Attribute keys supported by AutoScalingGroupMember.get_attribute."""

    INSTANCE = "instance"


@dataclass(frozen=True)
class InstanceAttribute:
    """The raw instance snapshot of a member."""

    instance: Instance
    kind: ClassVar[MemberAttribute] = MemberAttribute.INSTANCE


AttributeValue = InstanceAttribute


class AutoScalingGroupMember:
    """A single member of an autoscaling group.

    Two members are equal when they wrap the same instance ID.

    Attributes:
        instance: The wrapped instance snapshot, None for an empty member
    """

    def __init__(self, instance: Optional[Instance] = None) -> None:
        self.instance = instance

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AutoScalingGroupMember):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return f"AutoScalingGroupMember(instance_id={self._key()!r})"

    def _key(self) -> Optional[str]:
        return self.instance.instance_id if self.instance is not None else None

    def get_id(self) -> str:
        """Get the member ID, the EC2 instance ID.

        Raises:
            EmptyMemberError: If the member wraps no instance
        """
        if self.instance is None:
            raise EmptyMemberError("Can't get ID for non-existing instance")
        return self.instance.instance_id

    def get_name(self) -> str:
        """Get the member name, the instance's Name tag.

        Raises:
            EmptyMemberError: If the member wraps no instance
            TagNotFoundError: If the instance has no Name tag
        """
        if self.instance is None:
            raise EmptyMemberError("Can't get name for non-existing instance")
        return tag_value(NAME_TAG, self.instance.tags)

    def get_attribute(self, key: str) -> AttributeValue:
        """Get a provider specific attribute of the member.

        Args:
            key: One of the MemberAttribute values

        Raises:
            UnsupportedAttributeError: If the key is not a MemberAttribute
            EmptyMemberError: If the member wraps no instance
        """
        try:
            attribute = MemberAttribute(key)
        except ValueError:
            raise UnsupportedAttributeError(str(key)) from None

        if self.instance is None:
            raise EmptyMemberError(
                f"Can't get attribute {attribute.value} for non-existing instance"
            )
        if attribute is MemberAttribute.INSTANCE:
            return InstanceAttribute(instance=self.instance)
        raise UnsupportedAttributeError(attribute.value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON friendly dictionary."""
        if self.instance is None:
            raise EmptyMemberError("Can't describe non-existing instance")
        try:
            name: Optional[str] = self.get_name()
        except TagNotFoundError:
            name = None
        return {
            "instance_id": self.instance.instance_id,
            "name": name,
            "state": self.instance.state.name.value,
            "launch_time": self.instance.launch_time.isoformat(),
            "availability_zone": self.instance.availability_zone,
            "private_ip_address": self.instance.private_ip_address,
        }


def _election_order(member: AutoScalingGroupMember) -> Tuple[Any, str]:
    # Instance ID makes the order total when launch times are equal.
    instance = member.instance
    return (instance.launch_time, instance.instance_id)


async def get_current_instance(
    client: AWS,
    identity: Optional[IdentityDocument] = None,
) -> Instance:
    """Look up the EC2 instance Highlander runs on.

    Args:
        client: AWS capabilities
        identity: Identity document, fetched from the metadata service
            when not given

    Raises:
        BackendError: If either backend call fails
        ConfigurationError: If the instance ID does not match exactly one
            instance
    """
    if identity is None:
        identity = await client.metadata.get_identity_document()

    instances = await client.ec2.describe_instances(
        instance_ids=[identity.instance_id]
    )
    if len(instances) != 1:
        raise ConfigurationError(
            f"Cannot configure AutoScalingGroup provider from self: "
            f"{len(instances)} instances match {identity.instance_id}"
        )
    return instances[0]


async def resolve_group_name(
    client: AWS,
    options: AutoScalingGroupOptions,
    identity: Optional[IdentityDocument] = None,
) -> str:
    """Determine the autoscaling group name from the options.

    Raises:
        BackendError: If the current instance can't be looked up
        TagNotFoundError: If the current instance has no group tag
        ConfigurationError: If the current instance can't be identified
    """
    if not options.configure_from_self:
        return options.configure_from_name

    try:
        instance = await get_current_instance(client, identity)
    except BackendError as e:
        raise BackendError(
            f"can't retrieve current instance: {e.message}",
            operation=e.operation,
        ) from e

    try:
        return tag_value(ASG_TAG_NAME, instance.tags)
    except TagNotFoundError as e:
        raise TagNotFoundError(
            ASG_TAG_NAME,
            message=f"can't retrieve autoscaling group tag: {e.message}",
        ) from e


async def _build_client(
    options: AutoScalingGroupOptions,
) -> Tuple[AWS, Optional[IdentityDocument]]:
    """Create live AWS clients from the options.

    Returns the identity document too when it had to be fetched to find the
    region, so it is not requested twice.
    """
    try:
        session = options.session or boto3.session.Session(
            profile_name=options.profile
        )
    except BotoCoreError as e:
        raise ConfigurationError(f"can't create AWS session: {e}") from e

    metadata = MetadataClient(
        endpoint=options.metadata_endpoint,
        timeout=options.metadata_timeout,
    )

    identity = None
    region = options.region or session.region_name
    if not region and options.configure_from_self:
        try:
            identity = await metadata.get_identity_document()
        except BackendError as e:
            raise BackendError(
                f"can't determine region from instance metadata: {e.message}",
                operation=e.operation,
            ) from e
        region = identity.region
    if not region:
        raise ConfigurationError("AWS region is not configured")

    try:
        ec2 = Ec2Client.from_session(session, region_name=region)
    except BotoCoreError as e:
        raise ConfigurationError(f"can't create ec2 client: {e}") from e

    return AWS(ec2=ec2, metadata=metadata), identity


class AutoScalingGroup:
    """Leader election provider for an EC2 Auto Scaling group.

    The group name is fixed at construction. Every call to get_members or
    get_leader queries EC2 again; nothing is cached.

    Attributes:
        client: AWS capabilities used for queries
    """

    def __init__(self, client: AWS, name: str = "") -> None:
        """Initialize the provider.

        Args:
            client: AWS capabilities (live or fake)
            name: Autoscaling group name; an empty name matches nothing
        """
        self.client = client
        self._name = name

    @property
    def name(self) -> str:
        """Get the autoscaling group name."""
        return self._name

    @classmethod
    async def from_options(
        cls,
        options: AutoScalingGroupOptions,
        client: Optional[AWS] = None,
    ) -> "AutoScalingGroup":
        """Configure a provider, discovering the group name if requested.

        Args:
            options: Provider configuration
            client: AWS capabilities; live clients are built from the
                options when omitted

        Raises:
            ConfigurationError: If the options are invalid or the current
                instance can't be identified
            BackendError: If AWS can't be queried
            TagNotFoundError: If the current instance has no group tag
        """
        errors = options.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))

        identity = None
        if client is None:
            client, identity = await _build_client(options)

        name = await resolve_group_name(client, options, identity)
        logger.info(f"Configured AutoScalingGroup provider for group {name!r}")
        return cls(client, name)

    async def get_members(self) -> List[AutoScalingGroupMember]:
        """Get the running members of the group, oldest first.

        Returns:
            Members ordered by launch time, then instance ID; empty when
            the group has no running instances

        Raises:
            BackendError: If EC2 can't be queried
        """
        filters = [
            new_filter("instance-state-name", InstanceStateName.RUNNING.value),
            new_filter(f"tag:{ASG_TAG_NAME}", self._name),
        ]
        try:
            instances = await self.client.ec2.describe_instances(filters)
        except BackendError as e:
            raise BackendError(
                f"can't retrieve members of group {self._name!r}: {e.message}",
                operation=e.operation,
            ) from e

        members = [AutoScalingGroupMember(instance) for instance in instances]
        members.sort(key=_election_order)
        return members

    async def get_leader(self) -> AutoScalingGroupMember:
        """Elect the leader of the group: the oldest running member.

        Raises:
            NoMembersError: If the group has no running members
            BackendError: If EC2 can't be queried
        """
        members = await self.get_members()
        if not members:
            logger.warning(f"No running members in group {self._name!r}")
            raise NoMembersError(self._name)

        leader = members[0]
        logger.info(
            f"Leader of group {self._name!r} is {leader.get_id()} "
            f"(out of {len(members)} members)"
        )
        return leader

    async def is_leader(self, instance_id: Optional[str] = None) -> bool:
        """Check whether an instance is the current leader.

        Args:
            instance_id: Instance to check; defaults to the instance
                Highlander runs on

        Raises:
            NoMembersError: If the group has no running members
            BackendError: If AWS can't be queried
        """
        if instance_id is None:
            identity = await self.client.metadata.get_identity_document()
            instance_id = identity.instance_id

        leader = await self.get_leader()
        return leader.get_id() == instance_id
