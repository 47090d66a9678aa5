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

"""Container for the AWS capabilities Highlander depends on."""

from __future__ import annotations

from dataclasses import dataclass

from highlander.aws.ec2 import EC2
from highlander.aws.metadata import Metadata


@dataclass
class AWS:
    """The EC2 and metadata capabilities used by a group.

    Either side may be a live client or a fake; the group only sees the
    protocols.
    """

    ec2: EC2
    metadata: Metadata
