"""Member management: the add/edit member flow."""

import logging

from committee.models import Member, MemberDraft
from committee.services.directory_client import MemberDirectoryClient

logger = logging.getLogger(__name__)


class MemberNotFoundError(Exception):
    """No member with the given id in the directory roster."""

    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(f"Member {member_id} not found")


class MemberService:
    """List, create and edit members through the directory service."""

    def __init__(self, client: MemberDirectoryClient):
        self.client = client

    async def list_members(self) -> list[Member]:
        return await self.client.list_members()

    async def get_member(self, member_id: str) -> Member:
        """Find a member in a fresh roster snapshot.

        Raises:
            MemberNotFoundError: id not present in the roster
            DirectoryServiceError: roster could not be fetched
        """
        for member in await self.client.list_members():
            if member.id == member_id:
                return member
        raise MemberNotFoundError(member_id)

    async def create_member(self, draft: MemberDraft) -> list[Member]:
        """Create a member, then return the refreshed roster."""
        await self.client.create_member(draft)
        logger.info("Created member %s", draft.name)
        return await self.client.list_members()

    async def update_member(self, member_id: str, draft: MemberDraft) -> list[Member]:
        """Update a member's editable fields, then return the refreshed roster."""
        await self.client.update_member(member_id, draft)
        logger.info("Updated member %s", member_id)
        return await self.client.list_members()


__all__ = ["MemberNotFoundError", "MemberService"]
