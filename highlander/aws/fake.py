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
In-memory EC2 and metadata backends.

FakeEC2 understands the same filters the real DescribeInstances calls made
by Highlander use:

- ``instance-state-name``: instance state is one of the values
- ``tag:<key>``: the first tag called <key> has one of the values
- ``instance-id``: instance ID is one of the values

plus the ``instance_ids`` argument. Filter values may use the ``*`` and
``?`` wildcards, as in the real API; ``instance_ids`` are matched exactly.
Results come back as a single page in the order the instances were given.

Example:
    >>> ec2 = FakeEC2([instance_a, instance_b])
    >>> group = AutoScalingGroup(AWS(ec2=ec2, metadata=FakeMetadata(doc)), "asg")
    >>> leader = await group.get_leader()
"""

from __future__ import annotations

import fnmatch
from typing import Callable, Iterable, List, Optional, Sequence

from highlander.aws.models import Filter, IdentityDocument, Instance
from highlander.aws.tags import tag_value
from highlander.exceptions import BackendError, TagNotFoundError

TAG_FILTER_PREFIX = "tag:"


def _value_matches(actual: str, patterns: Sequence[str]) -> bool:
    # Only * and ? are wildcards; brackets are literal
    return any(
        fnmatch.fnmatchcase(actual, pattern.replace("[", "[[]"))
        for pattern in patterns
    )


def _state_matches(values: Sequence[str]) -> Callable[[Instance], bool]:
    return lambda instance: _value_matches(instance.state.name.value, values)


def _id_matches(values: Sequence[str]) -> Callable[[Instance], bool]:
    return lambda instance: _value_matches(instance.instance_id, values)


def _tag_matches(key: str, values: Sequence[str]) -> Callable[[Instance], bool]:
    def match(instance: Instance) -> bool:
        try:
            return _value_matches(tag_value(key, instance.tags), values)
        except TagNotFoundError:
            return False

    return match


class FakeEC2:
    """In-memory implementation of the EC2 capability.

    Attributes:
        instances: Instances the fake "owns"
        error: When set, every call raises this error instead
        calls: Recorded (filters, instance_ids) of every call
    """

    def __init__(
        self,
        instances: Optional[Iterable[Instance]] = None,
        error: Optional[BackendError] = None,
    ) -> None:
        self.instances: List[Instance] = list(instances or [])
        self.error = error
        self.calls: List[tuple] = []

    async def describe_instances(
        self,
        filters: Sequence[Filter] = (),
        instance_ids: Sequence[str] = (),
    ) -> List[Instance]:
        """Return the instances matching every filter."""
        self.calls.append((tuple(filters), tuple(instance_ids)))
        if self.error is not None:
            raise self.error

        result = list(self.instances)
        for f in filters:
            predicate = self._predicate(f)
            result = [instance for instance in result if predicate(instance)]
        if instance_ids:
            result = [i for i in result if i.instance_id in instance_ids]
        return result

    @staticmethod
    def _predicate(f: Filter) -> Callable[[Instance], bool]:
        if f.name == "instance-state-name":
            return _state_matches(f.values)
        if f.name == "instance-id":
            return _id_matches(f.values)
        if f.name.startswith(TAG_FILTER_PREFIX):
            return _tag_matches(f.name[len(TAG_FILTER_PREFIX):], f.values)
        raise BackendError(
            f"The filter '{f.name}' is invalid",
            operation="DescribeInstances",
        )


class FakeMetadata:
    """In-memory implementation of the metadata capability."""

    def __init__(
        self,
        document: Optional[IdentityDocument] = None,
        error: Optional[BackendError] = None,
    ) -> None:
        self.document = document
        self.error = error

    async def get_identity_document(self) -> IdentityDocument:
        """Return the configured identity document."""
        if self.error is not None:
            raise self.error
        if self.document is None:
            raise BackendError(
                "no identity document available",
                operation="GetInstanceIdentityDocument",
            )
        return self.document
