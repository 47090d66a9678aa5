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
Custom exceptions for Highlander.

Every error raised by the library derives from HighlanderError so callers
can handle "no leader yet" and backend failures with a single except clause
when they do not care about the details.
"""

from __future__ import annotations

from typing import Optional


class HighlanderError(Exception):
    """Base exception for Highlander errors."""

    def __init__(self, message: str, retry_after: Optional[float] = None) -> None:
        """Initialize the error.

        Args:
            message: Error message
            retry_after: Optional seconds to wait before retrying
        """
        super().__init__(message)
        self.message = message
        self.retry_after = retry_after


class BackendError(HighlanderError):
    """Raised when the EC2 API or the instance metadata service fails."""

    def __init__(
        self,
        message: str = "AWS backend error",
        operation: Optional[str] = None,
    ) -> None:
        """Initialize the backend error.

        Args:
            message: Error message
            operation: Name of the backend operation that failed
        """
        super().__init__(message)
        self.operation = operation


class TagNotFoundError(HighlanderError):
    """Raised when a tag is not present on an instance."""

    def __init__(self, tag_name: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Tag {tag_name} not found")
        self.tag_name = tag_name


class ConfigurationError(HighlanderError):
    """Raised when the group cannot be configured."""

    def __init__(self, message: str = "Invalid Highlander configuration") -> None:
        super().__init__(message)


class NoMembersError(HighlanderError):
    """Raised when a leader is requested from a group with no running members.

    An empty group is usually transient (the group is scaling up), hence the
    retry hint.
    """

    def __init__(
        self,
        group_name: str = "",
        message: Optional[str] = None,
        retry_after: float = 5.0,
    ) -> None:
        """Initialize the no members error.

        Args:
            group_name: Name of the autoscaling group that was queried
            message: Optional custom error message
            retry_after: Seconds to wait before retrying
        """
        super().__init__(
            message or f"No members found in group {group_name!r}, can't elect leader",
            retry_after=retry_after,
        )
        self.group_name = group_name


class EmptyMemberError(HighlanderError):
    """Raised when reading from a member that wraps no instance."""

    def __init__(self, message: str = "Member has no instance") -> None:
        super().__init__(message)


class UnsupportedAttributeError(HighlanderError):
    """Raised for attribute keys the provider does not know about."""

    def __init__(self, attribute: str) -> None:
        super().__init__(f"Attribute {attribute} not supported by provider")
        self.attribute = attribute
