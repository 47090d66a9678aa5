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
Highlander - there can be only one.

Deterministic leader election for EC2 Auto Scaling groups. Every instance
in a group asks EC2 for the group's running members and picks the oldest
one as leader, so all of them agree without any coordination protocol.

Example:
    >>> from highlander import AutoScalingGroup, AutoScalingGroupOptions
    >>> group = await AutoScalingGroup.from_options(
    ...     AutoScalingGroupOptions(configure_from_self=True)
    ... )
    >>> if await group.is_leader():
    ...     run_migrations()
"""

__version__ = "1.0.0"
__author__ = "Firefly Software Solutions Inc"
__license__ = "Apache-2.0"

from highlander.aws import AWS, Ec2Client, FakeEC2, FakeMetadata, MetadataClient
from highlander.exceptions import (
    BackendError,
    ConfigurationError,
    EmptyMemberError,
    HighlanderError,
    NoMembersError,
    TagNotFoundError,
    UnsupportedAttributeError,
)
from highlander.provider import (
    AutoScalingGroup,
    AutoScalingGroupMember,
    AutoScalingGroupOptions,
    InstanceAttribute,
    MemberAttribute,
)

__all__ = [
    # Provider
    "AutoScalingGroup",
    "AutoScalingGroupMember",
    "AutoScalingGroupOptions",
    "InstanceAttribute",
    "MemberAttribute",
    # AWS
    "AWS",
    "Ec2Client",
    "FakeEC2",
    "FakeMetadata",
    "MetadataClient",
    # Errors
    "BackendError",
    "ConfigurationError",
    "EmptyMemberError",
    "HighlanderError",
    "NoMembersError",
    "TagNotFoundError",
    "UnsupportedAttributeError",
]
