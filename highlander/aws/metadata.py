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
Instance metadata service (IMDSv2) client for Highlander.

Reads the instance identity document of the instance Highlander runs on.
A session token is requested first and sent with the document request, as
IMDSv2 requires. When the token request is answered with 404 or 405, or
times out, the document is requested without a token (IMDSv1). Any other
token failure is an error.
"""

from __future__ import annotations

import asyncio
import json
from typing import Optional, Protocol

import aiohttp
from pydantic import ValidationError

from highlander.aws.models import IdentityDocument
from highlander.exceptions import BackendError
from highlander.utils.logger import logger

DEFAULT_METADATA_ENDPOINT = "http://169.254.169.254"
TOKEN_PATH = "/latest/api/token"
IDENTITY_DOCUMENT_PATH = "/latest/dynamic/instance-identity/document"
TOKEN_TTL_HEADER = "X-aws-ec2-metadata-token-ttl-seconds"
TOKEN_HEADER = "X-aws-ec2-metadata-token"

# Token PUT replies that mean IMDSv2 is unavailable rather than refused
TOKEN_FALLBACK_STATUSES = (404, 405)


class Metadata(Protocol):
    """Self-identity capability."""

    async def get_identity_document(self) -> IdentityDocument:
        """Return the identity document of the current instance."""
        ...


class MetadataClient:
    """Metadata capability backed by the EC2 instance metadata service.

    A new HTTP session is opened for every lookup; nothing is cached.

    Attributes:
        endpoint: Base URL of the metadata service
        timeout: Total timeout for one lookup in seconds
        token_ttl: Lifetime requested for the IMDSv2 session token
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_METADATA_ENDPOINT,
        timeout: float = 2.0,
        token_ttl: int = 21600,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.token_ttl = token_ttl

    async def _get_token(self, session: aiohttp.ClientSession) -> Optional[str]:
        """Request an IMDSv2 session token.

        Returns None when the service does not hand out tokens, in which
        case the document is requested without one (IMDSv1).
        """
        try:
            async with session.put(
                f"{self.endpoint}{TOKEN_PATH}",
                headers={TOKEN_TTL_HEADER: str(self.token_ttl)},
            ) as resp:
                if resp.status in TOKEN_FALLBACK_STATUSES:
                    logger.debug(
                        f"Metadata token request returned HTTP {resp.status}, "
                        f"falling back to IMDSv1"
                    )
                    return None
                if resp.status != 200:
                    raise BackendError(
                        f"metadata token request failed: HTTP {resp.status}",
                        operation="GetMetadataToken",
                    )
                return await resp.text()
        except asyncio.TimeoutError:
            # A PUT hop limit of 1 drops the reply inside containers
            logger.debug("Metadata token request timed out, falling back to IMDSv1")
            return None

    async def get_identity_document(self) -> IdentityDocument:
        """Fetch the identity document of the current instance.

        Raises:
            BackendError: On transport failure, non-200 status or a
                malformed document
        """
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                token = await self._get_token(session)
                headers = {TOKEN_HEADER: token} if token is not None else {}

                async with session.get(
                    f"{self.endpoint}{IDENTITY_DOCUMENT_PATH}",
                    headers=headers,
                ) as resp:
                    if resp.status != 200:
                        raise BackendError(
                            f"identity document request failed: HTTP {resp.status}",
                            operation="GetInstanceIdentityDocument",
                        )
                    body = await resp.text()
        except asyncio.TimeoutError as e:
            raise BackendError(
                f"metadata service at {self.endpoint} timed out",
                operation="GetInstanceIdentityDocument",
            ) from e
        except aiohttp.ClientError as e:
            raise BackendError(
                f"metadata service at {self.endpoint} unreachable: {e}",
                operation="GetInstanceIdentityDocument",
            ) from e

        try:
            document = IdentityDocument.model_validate(json.loads(body))
        except (ValueError, ValidationError) as e:
            raise BackendError(
                f"malformed identity document: {e}",
                operation="GetInstanceIdentityDocument",
            ) from e

        logger.debug(
            f"Identity document: instance={document.instance_id} "
            f"region={document.region} az={document.availability_zone}"
        )
        return document
