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
EC2 instance listing for Highlander.

This module holds a thin wrapper around the boto3 EC2 client. Its main
purpose is to provide an interface that can be replaced by an in-memory
fake in tests (see highlander.aws.fake), and to hide DescribeInstances
pagination from callers.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Sequence

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from highlander.aws.models import Filter, Instance
from highlander.exceptions import BackendError
from highlander.utils.logger import logger

if TYPE_CHECKING:
    import boto3


class EC2(Protocol):
    """Instance listing capability."""

    async def describe_instances(
        self,
        filters: Sequence[Filter] = (),
        instance_ids: Sequence[str] = (),
    ) -> List[Instance]:
        """List instances matching every filter, across all pages."""
        ...


class Ec2Client:
    """EC2 capability backed by a boto3 EC2 client.

    Each DescribeInstances page is fetched in a worker thread so the event
    loop is not blocked; pages are requested one after another, following
    NextToken until the API stops returning one.

    Example:
        >>> import boto3
        >>> ec2 = Ec2Client(boto3.client("ec2", region_name="us-east-1"))
        >>> instances = await ec2.describe_instances(
        ...     [new_filter("instance-state-name", "running")]
        ... )
    """

    def __init__(self, client: Any) -> None:
        """Initialize the EC2 client wrapper.

        Args:
            client: A boto3 EC2 client
        """
        self._client = client

    @classmethod
    def from_session(
        cls,
        session: "boto3.session.Session",
        region_name: Optional[str] = None,
    ) -> "Ec2Client":
        """Create an Ec2Client from a boto3 session."""
        return cls(session.client("ec2", region_name=region_name))

    async def describe_instances(
        self,
        filters: Sequence[Filter] = (),
        instance_ids: Sequence[str] = (),
    ) -> List[Instance]:
        """List instances matching every filter, across all pages.

        Args:
            filters: Filters to AND together
            instance_ids: Restrict the listing to these instance IDs

        Returns:
            Instances from every reservation of every page, in API order

        Raises:
            BackendError: If the API call fails or returns malformed data
        """
        request: Dict[str, Any] = {}
        if filters:
            request["Filters"] = [f.to_api() for f in filters]
        if instance_ids:
            request["InstanceIds"] = list(instance_ids)

        instances: List[Instance] = []
        page = 0
        while True:
            page += 1
            try:
                response = await asyncio.to_thread(
                    self._client.describe_instances, **request
                )
            except (BotoCoreError, ClientError) as e:
                raise BackendError(
                    f"error listing AWS instances: {e}",
                    operation="DescribeInstances",
                ) from e

            for reservation in response.get("Reservations", []):
                for raw in reservation.get("Instances", []):
                    instances.append(self._parse_instance(raw))

            logger.debug(
                f"DescribeInstances page {page}: {len(instances)} instances so far"
            )

            next_token = response.get("NextToken")
            if not next_token:
                break
            request["NextToken"] = next_token

        return instances

    @staticmethod
    def _parse_instance(raw: Dict[str, Any]) -> Instance:
        try:
            return Instance.model_validate(raw)
        except ValidationError as e:
            raise BackendError(
                f"malformed instance record {raw.get('InstanceId', '<unknown>')}: {e}",
                operation="DescribeInstances",
            ) from e
