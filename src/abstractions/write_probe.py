from abc import ABC, abstractmethod


class WriteProbeError(Exception):
    """
    Raised when a write probe round trip did not complete successfully.
    """


class WriteProbe(ABC):
    """
    Abstract base class for probes that perform an authenticated write-then-verify round trip.
    """

    @abstractmethod
    async def run(self) -> None:
        """
        Perform one full write and verify it.

        Raises:
            WriteProbeError: If any step of the round trip failed.
        """
