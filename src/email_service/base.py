from abc import ABC, abstractmethod

from src.rsvp.dtos import RSVPSubmissionDTO


class EmailServiceBase(ABC):
    @abstractmethod
    async def send_confirmation(self, to_address: str, submission: RSVPSubmissionDTO) -> None:
        """Send the guest a summary of their RSVP."""
        pass

    @abstractmethod
    async def send_organizer_notification(
        self,
        to_addresses: list[str],
        submission: RSVPSubmissionDTO,
        reason: str,
    ) -> None:
        """Tell the organizers about a submission the guest could not be emailed about."""
        pass
