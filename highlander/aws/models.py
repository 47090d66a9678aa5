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
Pydantic models for the AWS data Highlander reads.

Two wire shapes are modelled:
- EC2 DescribeInstances instance records (PascalCase keys, as returned by
  boto3)
- The instance identity document served by the instance metadata service
  (camelCase keys)

Models are frozen snapshots: a fresh set is parsed on every query and
nothing in Highlander mutates them. Fields are populated either by their
wire alias or by their Python name, so fixtures can be written either way.

Example:
    >>> instance = Instance.model_validate({
    ...     "InstanceId": "i-0123456789abcdef0",
    ...     "State": {"Code": 16, "Name": "running"},
    ...     "LaunchTime": "2006-01-03T15:04:05Z",
    ...     "Tags": [{"Key": "Name", "Value": "web-1"}],
    ... })
    >>> instance.state.name
    <InstanceStateName.RUNNING: 'running'>
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InstanceStateName(str, Enum):
    """EC2 instance lifecycle states."""

    PENDING = "pending"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"
    STOPPING = "stopping"
    STOPPED = "stopped"


class Tag(BaseModel):
    """A single key/value tag on an instance."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    key: str = Field(..., alias="Key")
    value: str = Field("", alias="Value")


class InstanceState(BaseModel):
    """Lifecycle state of an instance."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: InstanceStateName = Field(..., alias="Name")
    code: Optional[int] = Field(None, alias="Code")


class Placement(BaseModel):
    """Placement of an instance."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    availability_zone: Optional[str] = Field(None, alias="AvailabilityZone")


class Instance(BaseModel):
    """
    Snapshot of an EC2 instance as returned by DescribeInstances.

    Only the fields Highlander and its callers use are modelled; everything
    else in the API response is ignored.

    Attributes:
        instance_id: EC2 instance identifier
        state: Lifecycle state
        launch_time: When the instance was launched (timezone aware)
        tags: Tags in the order the API returned them
        placement: Placement information
        private_ip_address: Primary private IPv4 address
        public_ip_address: Public IPv4 address, if any
        private_dns_name: Private DNS name
        public_dns_name: Public DNS name, if any
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    instance_id: str = Field(..., alias="InstanceId")
    state: InstanceState = Field(..., alias="State")
    launch_time: datetime = Field(..., alias="LaunchTime")
    tags: List[Tag] = Field(default_factory=list, alias="Tags")
    placement: Optional[Placement] = Field(None, alias="Placement")
    private_ip_address: Optional[str] = Field(None, alias="PrivateIpAddress")
    public_ip_address: Optional[str] = Field(None, alias="PublicIpAddress")
    private_dns_name: Optional[str] = Field(None, alias="PrivateDnsName")
    public_dns_name: Optional[str] = Field(None, alias="PublicDnsName")

    @field_validator("launch_time")
    @classmethod
    def _ensure_timezone(cls, value: datetime) -> datetime:
        # Naive and aware datetimes cannot be compared; EC2 reports UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def availability_zone(self) -> Optional[str]:
        """Get the availability zone, if known."""
        if self.placement is None:
            return None
        return self.placement.availability_zone


class IdentityDocument(BaseModel):
    """Instance identity document from the instance metadata service."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    instance_id: str = Field(..., alias="instanceId")
    availability_zone: str = Field("", alias="availabilityZone")
    region: str = Field("", alias="region")
    private_ip: Optional[str] = Field(None, alias="privateIp")
    account_id: Optional[str] = Field(None, alias="accountId")
    instance_type: Optional[str] = Field(None, alias="instanceType")
    image_id: Optional[str] = Field(None, alias="imageId")


@dataclass(frozen=True)
class Filter:
    """A named DescribeInstances filter.

    Values of one filter are ORed; separate filters are ANDed.
    """

    name: str
    values: Tuple[str, ...]

    def to_api(self) -> Dict[str, Any]:
        """Convert to the DescribeInstances request shape."""
        return {"Name": self.name, "Values": list(self.values)}


def new_filter(name: str, *values: str) -> Filter:
    """Create a filter matching any of the given values."""
    return Filter(name=name, values=tuple(values))
