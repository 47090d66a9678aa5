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
AWS access for Highlander.

Two narrow capabilities are used:
- EC2: list instances matching a filter set (pagination handled internally)
- Metadata: read the identity document of the current instance

Both have a live implementation (boto3 / aiohttp) and an in-memory fake.
"""

from highlander.aws.client import AWS
from highlander.aws.ec2 import EC2, Ec2Client
from highlander.aws.fake import FakeEC2, FakeMetadata
from highlander.aws.metadata import DEFAULT_METADATA_ENDPOINT, Metadata, MetadataClient
from highlander.aws.models import (
    Filter,
    IdentityDocument,
    Instance,
    InstanceState,
    InstanceStateName,
    Placement,
    Tag,
    new_filter,
)
from highlander.aws.tags import ASG_TAG_NAME, NAME_TAG, tag_value

__all__ = [
    "AWS",
    # Capabilities
    "EC2",
    "Ec2Client",
    "Metadata",
    "MetadataClient",
    "DEFAULT_METADATA_ENDPOINT",
    # Fakes
    "FakeEC2",
    "FakeMetadata",
    # Models
    "Filter",
    "IdentityDocument",
    "Instance",
    "InstanceState",
    "InstanceStateName",
    "Placement",
    "Tag",
    "new_filter",
    # Tags
    "ASG_TAG_NAME",
    "NAME_TAG",
    "tag_value",
]
