from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class UpstreamResponse:
	"""Fully buffered upstream reply.

	Attributes:
		status_code: HTTP status returned by the upstream API.
		payload: Parsed JSON body, relayed to the caller untouched on success.
	"""

	status_code: int
	payload: Any


class AbstractLLMClient(ABC):
	"""Interface for clients forwarding generateContent requests upstream."""

	@abstractmethod
	async def generate_content(self, payload: Any) -> UpstreamResponse:
		"""Forward an opaque request body and return the parsed reply.

		Args:
			payload: JSON-compatible request body, sent as-is.

		Returns:
			UpstreamResponse: Upstream status and parsed JSON body, whatever
				the status (error payloads are interpreted by the caller).

		Raises:
			ForwardingAppError: If the network call fails or the reply is not JSON.
		"""
		...
