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
Configuration for the AutoScalingGroup provider.

The group to elect a leader from is chosen in one of two ways:
- From self: read the aws:autoscaling:groupName tag of the instance
  Highlander runs on
- From name: use an explicitly configured group name
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from highlander.aws.metadata import DEFAULT_METADATA_ENDPOINT
from highlander.exceptions import ConfigurationError

if TYPE_CHECKING:
    import boto3

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class AutoScalingGroupOptions:
    """Configuration options for the AutoScalingGroup provider.

    Exactly one of ``configure_from_self`` and ``configure_from_name``
    must be set.

    Attributes:
        configure_from_self: Discover the group from this instance's tags
        configure_from_name: Explicit autoscaling group name
        session: boto3 session to build the EC2 client from
        profile: AWS profile used when no session is given
        region: AWS region; defaults to the session region, then (from
            self only) the region in the identity document
        metadata_endpoint: Base URL of the instance metadata service
        metadata_timeout: Timeout for one metadata lookup in seconds
    """

    configure_from_self: bool = False
    configure_from_name: str = ""
    session: Optional["boto3.session.Session"] = field(
        default=None, repr=False, compare=False
    )
    profile: Optional[str] = None
    region: Optional[str] = None
    metadata_endpoint: str = DEFAULT_METADATA_ENDPOINT
    metadata_timeout: float = 2.0

    @classmethod
    def from_env(cls) -> "AutoScalingGroupOptions":
        """Create AutoScalingGroupOptions from environment variables.

        Environment variables:
            HIGHLANDER_CONFIGURE_FROM_SELF: "true" to discover the group from self
            HIGHLANDER_GROUP_NAME: Explicit autoscaling group name
            HIGHLANDER_AWS_PROFILE: AWS profile name
            HIGHLANDER_AWS_REGION: AWS region (falls back to AWS_REGION,
                then AWS_DEFAULT_REGION)
            HIGHLANDER_METADATA_ENDPOINT: Metadata service base URL
            HIGHLANDER_METADATA_TIMEOUT: Metadata lookup timeout (seconds)

        Returns:
            AutoScalingGroupOptions with values from environment

        Raises:
            ConfigurationError: If HIGHLANDER_METADATA_TIMEOUT is not a number
        """
        try:
            metadata_timeout = float(
                os.environ.get("HIGHLANDER_METADATA_TIMEOUT", "2.0")
            )
        except ValueError as e:
            raise ConfigurationError(
                "HIGHLANDER_METADATA_TIMEOUT must be a number"
            ) from e

        region = (
            os.environ.get("HIGHLANDER_AWS_REGION")
            or os.environ.get("AWS_REGION")
            or os.environ.get("AWS_DEFAULT_REGION")
        )
        return cls(
            configure_from_self=os.environ.get(
                "HIGHLANDER_CONFIGURE_FROM_SELF", ""
            ).lower() in _TRUE_VALUES,
            configure_from_name=os.environ.get("HIGHLANDER_GROUP_NAME", ""),
            profile=os.environ.get("HIGHLANDER_AWS_PROFILE") or None,
            region=region or None,
            metadata_endpoint=os.environ.get(
                "HIGHLANDER_METADATA_ENDPOINT", DEFAULT_METADATA_ENDPOINT
            ),
            metadata_timeout=metadata_timeout,
        )

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.configure_from_self and self.configure_from_name:
            errors.append(
                "configure_from_self and configure_from_name are mutually exclusive"
            )
        elif not self.configure_from_self and not self.configure_from_name:
            errors.append(
                "either configure_from_self or configure_from_name is required"
            )

        if self.metadata_timeout <= 0:
            errors.append("metadata_timeout must be positive")

        return errors
