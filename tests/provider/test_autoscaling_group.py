# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for AutoScalingGroup membership and leader election."""

from unittest.mock import AsyncMock, patch

import pytest

from highlander.aws import AWS, FakeEC2, FakeMetadata, IdentityDocument
from highlander.exceptions import (
    BackendError,
    ConfigurationError,
    NoMembersError,
    TagNotFoundError,
)
from highlander.provider import (
    AutoScalingGroup,
    AutoScalingGroupOptions,
    get_current_instance,
    resolve_group_name,
)


def _ids(members):
    return [m.get_id() for m in members]


class TestGetMembers:
    """Tests for AutoScalingGroup.get_members."""

    @pytest.mark.asyncio
    async def test_members_oldest_first(self, aws):
        """Test running, tagged members are returned oldest first."""
        group = AutoScalingGroup(aws, "asg")

        members = await group.get_members()

        assert _ids(members) == ["i-something3", "i-something2"]

    @pytest.mark.asyncio
    async def test_excludes_other_groups_and_states(self, aws):
        """Test pending and untagged instances are not members."""
        group = AutoScalingGroup(aws, "asg")

        ids = _ids(await group.get_members())

        assert "i-something1" not in ids  # other group
        assert "i-something4" not in ids  # no group tag
        assert "i-something5" not in ids  # pending

    @pytest.mark.asyncio
    async def test_no_instances(self, fake_metadata):
        """Test an empty backend yields no members."""
        group = AutoScalingGroup(AWS(ec2=FakeEC2(), metadata=fake_metadata), "asg")

        assert await group.get_members() == []

    @pytest.mark.asyncio
    async def test_empty_name_matches_nothing(self, aws):
        """Test an unconfigured group name matches no instance."""
        group = AutoScalingGroup(aws)

        assert group.name == ""
        assert await group.get_members() == []

    @pytest.mark.asyncio
    async def test_queries_every_time(self, aws, fake_ec2):
        """Test nothing is cached between calls."""
        group = AutoScalingGroup(aws, "asg")

        await group.get_members()
        await group.get_members()

        assert len(fake_ec2.calls) == 2

    @pytest.mark.asyncio
    async def test_sees_fleet_changes(self, aws, fake_ec2, instance_factory):
        """Test a newly launched instance shows up on the next call."""
        group = AutoScalingGroup(aws, "asg")
        assert len(await group.get_members()) == 2

        fake_ec2.instances.append(instance_factory(
            "i-new", "2030-01-01T00:00:00Z",
            tags=[("aws:autoscaling:groupName", "asg")],
        ))

        assert _ids(await group.get_members())[-1] == "i-new"

    @pytest.mark.asyncio
    async def test_filters_sent(self, aws, fake_ec2):
        """Test the running state and group tag filters are requested."""
        await AutoScalingGroup(aws, "asg").get_members()

        filters, instance_ids = fake_ec2.calls[0]
        assert {(f.name, f.values) for f in filters} == {
            ("instance-state-name", ("running",)),
            ("tag:aws:autoscaling:groupName", ("asg",)),
        }
        assert instance_ids == ()

    @pytest.mark.asyncio
    async def test_backend_error_has_context(self, fake_metadata):
        """Test backend errors are re-raised with the group name."""
        ec2 = FakeEC2(error=BackendError("throttled", operation="DescribeInstances"))
        group = AutoScalingGroup(AWS(ec2=ec2, metadata=fake_metadata), "asg")

        with pytest.raises(BackendError) as exc_info:
            await group.get_members()

        assert "asg" in str(exc_info.value)
        assert "throttled" in str(exc_info.value)
        assert exc_info.value.operation == "DescribeInstances"
        assert isinstance(exc_info.value.__cause__, BackendError)


class TestGetLeader:
    """Tests for AutoScalingGroup.get_leader."""

    @pytest.mark.asyncio
    async def test_oldest_is_leader(self, aws):
        """Test the oldest running member is elected."""
        leader = await AutoScalingGroup(aws, "asg").get_leader()

        assert leader.get_id() == "i-something3"
        assert leader.get_name() == "asg3"

    @pytest.mark.asyncio
    async def test_no_members(self, fake_metadata):
        """Test electing from an empty group raises NoMembersError."""
        group = AutoScalingGroup(AWS(ec2=FakeEC2(), metadata=fake_metadata), "asg")

        with pytest.raises(NoMembersError) as exc_info:
            await group.get_leader()

        assert exc_info.value.group_name == "asg"
        assert exc_info.value.retry_after is not None

    @pytest.mark.asyncio
    async def test_only_pending_members(self, fake_metadata, instance_factory):
        """Test a group that is still starting up has no leader."""
        ec2 = FakeEC2([
            instance_factory(
                "i-1", "2020-01-01T00:00:00Z", state="pending",
                tags=[("aws:autoscaling:groupName", "asg")],
            ),
        ])
        group = AutoScalingGroup(AWS(ec2=ec2, metadata=fake_metadata), "asg")

        with pytest.raises(NoMembersError):
            await group.get_leader()

    @pytest.mark.asyncio
    async def test_equal_launch_times_broken_by_id(self, fake_metadata, instance_factory):
        """Test ties on launch time go to the smallest instance ID."""
        tags = [("aws:autoscaling:groupName", "asg")]
        ec2 = FakeEC2([
            instance_factory("i-b", "2020-01-01T00:00:00Z", tags=tags),
            instance_factory("i-c", "2020-01-01T00:00:00Z", tags=tags),
            instance_factory("i-a", "2020-01-01T00:00:00Z", tags=tags),
        ])
        group = AutoScalingGroup(AWS(ec2=ec2, metadata=fake_metadata), "asg")

        assert _ids(await group.get_members()) == ["i-a", "i-b", "i-c"]
        assert (await group.get_leader()).get_id() == "i-a"

    @pytest.mark.asyncio
    async def test_leader_independent_of_listing_order(self, fake_metadata, fleet):
        """Test every ordering of the backend elects the same leader."""
        for rotation in range(len(fleet)):
            instances = fleet[rotation:] + fleet[:rotation]
            ec2 = FakeEC2(list(reversed(instances)) if rotation % 2 else instances)
            group = AutoScalingGroup(AWS(ec2=ec2, metadata=fake_metadata), "asg")

            assert (await group.get_leader()).get_id() == "i-something3"

    @pytest.mark.asyncio
    async def test_mixed_timezones(self, fake_metadata, instance_factory):
        """Test launch times in different offsets compare as instants."""
        tags = [("aws:autoscaling:groupName", "asg")]
        ec2 = FakeEC2([
            instance_factory("i-utc", "2020-01-01T10:00:00Z", tags=tags),
            instance_factory("i-east", "2020-01-01T11:00:00+02:00", tags=tags),
        ])
        group = AutoScalingGroup(AWS(ec2=ec2, metadata=fake_metadata), "asg")

        assert (await group.get_leader()).get_id() == "i-east"


class TestIsLeader:
    """Tests for AutoScalingGroup.is_leader."""

    @pytest.mark.asyncio
    async def test_self_is_not_leader(self, aws):
        """Test i-something2 (self) is not the leader."""
        assert await AutoScalingGroup(aws, "asg").is_leader() is False

    @pytest.mark.asyncio
    async def test_self_is_leader(self, fake_ec2):
        """Test the leader recognises itself."""
        metadata = FakeMetadata(IdentityDocument(instance_id="i-something3"))
        group = AutoScalingGroup(AWS(ec2=fake_ec2, metadata=metadata), "asg")

        assert await group.is_leader() is True

    @pytest.mark.asyncio
    async def test_explicit_instance_id(self, aws):
        """Test checking another instance skips the metadata lookup."""
        aws.metadata = FakeMetadata(error=BackendError("no metadata here"))
        group = AutoScalingGroup(aws, "asg")

        assert await group.is_leader("i-something3") is True
        assert await group.is_leader("i-something2") is False

    @pytest.mark.asyncio
    async def test_empty_group(self, fake_metadata):
        """Test is_leader propagates NoMembersError."""
        group = AutoScalingGroup(AWS(ec2=FakeEC2(), metadata=fake_metadata), "asg")

        with pytest.raises(NoMembersError):
            await group.is_leader()


class TestGroupResolver:
    """Tests for group name resolution."""

    @pytest.mark.asyncio
    async def test_current_instance(self, aws):
        """Test the current instance is looked up by its ID."""
        instance = await get_current_instance(aws)

        assert instance.instance_id == "i-something2"

    @pytest.mark.asyncio
    async def test_current_instance_missing(self, fake_ec2):
        """Test an unknown self ID is a configuration error."""
        metadata = FakeMetadata(IdentityDocument(instance_id="i-unknown"))

        with pytest.raises(ConfigurationError):
            await get_current_instance(AWS(ec2=fake_ec2, metadata=metadata))

    @pytest.mark.asyncio
    async def test_current_instance_ambiguous(self, fake_metadata, instance_factory):
        """Test several matches for the self ID is a configuration error."""
        ec2 = FakeEC2([
            instance_factory("i-something2", "2020-01-01T00:00:00Z"),
            instance_factory("i-something2", "2020-01-02T00:00:00Z"),
        ])

        with pytest.raises(ConfigurationError):
            await get_current_instance(AWS(ec2=ec2, metadata=fake_metadata))

    @pytest.mark.asyncio
    async def test_from_self(self, aws):
        """Test the group is read from the current instance's tag."""
        options = AutoScalingGroupOptions(configure_from_self=True)

        assert await resolve_group_name(aws, options) == "asg"

    @pytest.mark.asyncio
    async def test_from_self_uses_given_identity(self, fake_ec2):
        """Test a pre-fetched identity document is not fetched again."""
        metadata = FakeMetadata(error=BackendError("should not be called"))
        options = AutoScalingGroupOptions(configure_from_self=True)

        name = await resolve_group_name(
            AWS(ec2=fake_ec2, metadata=metadata),
            options,
            IdentityDocument(instance_id="i-something1"),
        )

        assert name == "asg1"

    @pytest.mark.asyncio
    async def test_from_self_without_group_tag(self, fake_ec2):
        """Test an instance outside any group raises TagNotFoundError."""
        metadata = FakeMetadata(IdentityDocument(instance_id="i-something4"))
        options = AutoScalingGroupOptions(configure_from_self=True)

        with pytest.raises(TagNotFoundError) as exc_info:
            await resolve_group_name(AWS(ec2=fake_ec2, metadata=metadata), options)

        assert "can't retrieve autoscaling group tag" in str(exc_info.value)
        assert exc_info.value.tag_name == "aws:autoscaling:groupName"

    @pytest.mark.asyncio
    async def test_from_self_metadata_failure(self, fake_ec2):
        """Test metadata failures are wrapped with context."""
        metadata = FakeMetadata(error=BackendError("connection refused"))
        options = AutoScalingGroupOptions(configure_from_self=True)

        with pytest.raises(BackendError) as exc_info:
            await resolve_group_name(AWS(ec2=fake_ec2, metadata=metadata), options)

        assert "can't retrieve current instance" in str(exc_info.value)
        assert "connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_from_name_does_no_io(self):
        """Test an explicit name needs no backend at all."""
        ec2 = FakeEC2(error=BackendError("should not be called"))
        metadata = FakeMetadata(error=BackendError("should not be called"))
        options = AutoScalingGroupOptions(configure_from_name="web-asg")

        name = await resolve_group_name(AWS(ec2=ec2, metadata=metadata), options)

        assert name == "web-asg"
        assert ec2.calls == []


class TestFromOptions:
    """Tests for AutoScalingGroup.from_options."""

    @pytest.mark.asyncio
    async def test_from_self(self, aws):
        """Test configuring from self with injected clients."""
        group = await AutoScalingGroup.from_options(
            AutoScalingGroupOptions(configure_from_self=True), client=aws
        )

        assert group.name == "asg"
        assert group.client is aws
        assert (await group.get_leader()).get_id() == "i-something3"

    @pytest.mark.asyncio
    async def test_from_name(self, aws):
        """Test configuring from an explicit name."""
        group = await AutoScalingGroup.from_options(
            AutoScalingGroupOptions(configure_from_name="asg1"), client=aws
        )

        assert group.name == "asg1"
        assert _ids(await group.get_members()) == ["i-something1"]

    @pytest.mark.asyncio
    async def test_both_modes_rejected(self, aws):
        """Test both modes at once is a configuration error."""
        options = AutoScalingGroupOptions(
            configure_from_self=True, configure_from_name="asg"
        )

        with pytest.raises(ConfigurationError, match="mutually exclusive"):
            await AutoScalingGroup.from_options(options, client=aws)

    @pytest.mark.asyncio
    async def test_no_mode_rejected(self, aws):
        """Test neither mode is a configuration error."""
        with pytest.raises(ConfigurationError):
            await AutoScalingGroup.from_options(AutoScalingGroupOptions(), client=aws)

    @pytest.mark.asyncio
    async def test_builds_live_clients(self):
        """Test live clients are built from the options."""
        options = AutoScalingGroupOptions(
            configure_from_name="asg", region="eu-west-1", profile=None
        )
        with patch("highlander.provider.autoscaling_group.boto3") as mock_boto3:
            group = await AutoScalingGroup.from_options(options)

        session = mock_boto3.session.Session.return_value
        session.client.assert_called_once_with("ec2", region_name="eu-west-1")
        assert group.client.metadata.endpoint == "http://169.254.169.254"
        assert group.name == "asg"

    @pytest.mark.asyncio
    async def test_region_from_identity_document(self, fleet, identity):
        """Test the region comes from instance metadata when unset."""
        options = AutoScalingGroupOptions(configure_from_self=True)
        ec2 = FakeEC2(fleet)

        with patch("highlander.provider.autoscaling_group.boto3") as mock_boto3, \
                patch("highlander.provider.autoscaling_group.Ec2Client") as mock_ec2, \
                patch(
                    "highlander.provider.autoscaling_group.MetadataClient.get_identity_document",
                    new=AsyncMock(return_value=identity),
                ) as mock_identity:
            mock_boto3.session.Session.return_value.region_name = None
            mock_ec2.from_session.return_value = ec2
            group = await AutoScalingGroup.from_options(options)

        mock_ec2.from_session.assert_called_once_with(
            mock_boto3.session.Session.return_value, region_name="us-east-1"
        )
        # Fetched once, reused for self discovery
        assert mock_identity.await_count == 1
        assert group.name == "asg"

    @pytest.mark.asyncio
    async def test_missing_region(self):
        """Test an explicit name without any region is a configuration error."""
        options = AutoScalingGroupOptions(configure_from_name="asg")
        with patch("highlander.provider.autoscaling_group.boto3") as mock_boto3:
            mock_boto3.session.Session.return_value.region_name = None
            with pytest.raises(ConfigurationError, match="region"):
                await AutoScalingGroup.from_options(options)
