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

"""Tag lookups on EC2 instances."""

from __future__ import annotations

from typing import Iterable

from highlander.aws.models import Tag
from highlander.exceptions import TagNotFoundError

# Tag the EC2 Auto Scaling service puts on every instance it launches
ASG_TAG_NAME = "aws:autoscaling:groupName"
NAME_TAG = "Name"


def tag_value(name: str, tags: Iterable[Tag]) -> str:
    """Return the value of the first tag called ``name``.

    The API does not promise unique keys, so the first match in
    iteration order wins.

    Raises:
        TagNotFoundError: If no tag has that key
    """
    for tag in tags:
        if tag.key == name:
            return tag.value
    raise TagNotFoundError(name)
