# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures: a small fake autoscaling fleet."""

from typing import Callable, List, Optional, Sequence, Tuple

import pytest

from highlander.aws import AWS, FakeEC2, FakeMetadata, IdentityDocument, Instance

InstanceFactory = Callable[..., Instance]


def _make_instance(
    instance_id: str,
    launch_time: str,
    state: str = "running",
    tags: Optional[Sequence[Tuple[str, str]]] = None,
    availability_zone: str = "us-east-1a",
    private_ip: Optional[str] = None,
) -> Instance:
    return Instance.model_validate({
        "InstanceId": instance_id,
        "State": {"Name": state},
        "LaunchTime": launch_time,
        "Tags": [{"Key": k, "Value": v} for k, v in (tags or [])],
        "Placement": {"AvailabilityZone": availability_zone},
        "PrivateIpAddress": private_ip,
    })


@pytest.fixture
def instance_factory() -> InstanceFactory:
    """Factory building Instance snapshots from a few fields."""
    return _make_instance


@pytest.fixture
def fleet() -> List[Instance]:
    """Five instances, three of them tagged with group "asg".

    - i-something1: running, group asg1
    - i-something2: running, group asg, launched 2006-02-02
    - i-something3: running, group asg, launched 2006-01-03 (oldest)
    - i-something4: running, no group tag, launched before everyone
    - i-something5: pending, group asg
    """
    return [
        _make_instance(
            "i-something1", "2007-01-02T15:04:05Z",
            tags=[("Name", "asg1"), ("aws:autoscaling:groupName", "asg1")],
            private_ip="172.20.0.1",
        ),
        _make_instance(
            "i-something2", "2006-02-02T15:04:05Z",
            tags=[("Name", "asg2"), ("aws:autoscaling:groupName", "asg")],
            private_ip="172.20.0.2",
        ),
        _make_instance(
            "i-something3", "2006-01-03T15:04:05Z",
            tags=[("Name", "asg3"), ("aws:autoscaling:groupName", "asg")],
            private_ip="172.20.0.3",
        ),
        _make_instance(
            "i-something4", "2006-01-02T15:04:05Z",
            tags=[("Name", "asg4")],
            private_ip="172.20.0.4",
        ),
        _make_instance(
            "i-something5", "2012-01-02T15:04:05Z",
            state="pending",
            tags=[("Name", "asg5"), ("aws:autoscaling:groupName", "asg")],
            private_ip="172.20.0.5",
        ),
    ]


@pytest.fixture
def identity() -> IdentityDocument:
    """Identity document of i-something2."""
    return IdentityDocument(
        instance_id="i-something2",
        availability_zone="us-east-1a",
        region="us-east-1",
        private_ip="172.20.0.2",
    )


@pytest.fixture
def fake_ec2(fleet: List[Instance]) -> FakeEC2:
    """Fake EC2 backend holding the fleet."""
    return FakeEC2(fleet)


@pytest.fixture
def fake_metadata(identity: IdentityDocument) -> FakeMetadata:
    """Fake metadata backend for i-something2."""
    return FakeMetadata(identity)


@pytest.fixture
def aws(fake_ec2: FakeEC2, fake_metadata: FakeMetadata) -> AWS:
    """AWS capabilities backed by the fakes."""
    return AWS(ec2=fake_ec2, metadata=fake_metadata)
