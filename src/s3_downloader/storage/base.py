"""Abstract base class for object retrieval backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

from ..uri import ObjectLocator


@dataclass
class RetrievalResult:
    """Body stream of a fetched object alongside its response metadata.

    The stream can be read once. Whoever holds the result must either copy
    it out or call ``close()``.
    """

    stream: BinaryIO
    content_length: Optional[int] = None
    content_type: Optional[str] = None
    metadata: dict[str, str] = field(default_factory=dict)
    region: Optional[str] = None

    def close(self) -> None:
        close = getattr(self.stream, "close", None)
        if close is not None:
            close()


class ObjectRetriever(ABC):
    """Backend-agnostic interface for fetching a single object."""

    @abstractmethod
    async def retrieve(
        self, locator: ObjectLocator, region: Optional[str] = None
    ) -> RetrievalResult:
        """Fetch the object named by ``locator``. Raises RetrievalError subclasses."""
