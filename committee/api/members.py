"""Member list and add/edit endpoints."""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, status

from committee.api.deps import get_engine, get_member_service
from committee.api.errors import (
    MemberNotFoundError,
    MemberSaveError,
    RosterUnavailableError,
    raise_app_error,
)
from committee.models import Member, MemberDraft
from committee.services import member_service as members
from committee.services.contribution_service import ContributionMatrixEngine
from committee.services.directory_client import DirectoryServiceError
from committee.services.localizer import t
from committee.services.member_service import MemberService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/members", tags=["members"])


def _log_debug(endpoint: str, start_time: float, **kwargs) -> None:
    duration_ms = int((time.time() - start_time) * 1000)
    extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
    logger.debug("members.%s: %sduration_ms=%d", endpoint, f"{extra} " if extra else "", duration_ms)


@router.get("", response_model=list[Member])
async def list_members(
    service: MemberService = Depends(get_member_service),  # noqa: B008
) -> list[Member]:
    """Get the full member roster.

    Raises:
        502: Directory unavailable
    """
    start_time = time.time()
    try:
        result = await service.list_members()
        _log_debug("list", start_time, count=len(result))
        return result
    except DirectoryServiceError as e:
        logger.error("Failed to load members: %s", e)
        raise_app_error(RosterUnavailableError())
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in /api/members: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=t("errors.server_error")) from e


@router.get("/{member_id}", response_model=Member)
async def get_member(
    member_id: str,
    service: MemberService = Depends(get_member_service),  # noqa: B008
) -> Member:
    """Get one member.

    Raises:
        404: Unknown member
        502: Directory unavailable
    """
    try:
        return await service.get_member(member_id)
    except members.MemberNotFoundError:
        raise_app_error(MemberNotFoundError(member_id))
    except DirectoryServiceError as e:
        logger.error("Failed to load members: %s", e)
        raise_app_error(RosterUnavailableError())


@router.get("/{member_id}/form", response_model=MemberDraft)
async def get_member_form(
    member_id: str,
    service: MemberService = Depends(get_member_service),  # noqa: B008
) -> MemberDraft:
    """Edit form prefilled with the member's current fields."""
    try:
        member = await service.get_member(member_id)
    except members.MemberNotFoundError:
        raise_app_error(MemberNotFoundError(member_id))
    except DirectoryServiceError as e:
        logger.error("Failed to load members: %s", e)
        raise_app_error(RosterUnavailableError())
    return MemberDraft.from_member(member)


@router.post("", response_model=list[Member], status_code=status.HTTP_201_CREATED)
async def create_member(
    draft: MemberDraft,
    service: MemberService = Depends(get_member_service),  # noqa: B008
    engine: ContributionMatrixEngine = Depends(get_engine),  # noqa: B008
) -> list[Member]:
    """Add a member and return the refreshed roster.

    Raises:
        422: Missing required fields
        502: Directory rejected the member or roster refresh failed
    """
    try:
        roster = await service.create_member(draft)
    except DirectoryServiceError as e:
        logger.error("Failed to add member %s: %s", draft.name, e)
        raise_app_error(MemberSaveError(t("errors.add_member")))
    engine.set_members(roster)
    return roster


@router.patch("/{member_id}", response_model=list[Member])
async def update_member(
    member_id: str,
    draft: MemberDraft,
    service: MemberService = Depends(get_member_service),  # noqa: B008
    engine: ContributionMatrixEngine = Depends(get_engine),  # noqa: B008
) -> list[Member]:
    """Update a member and return the refreshed roster.

    Raises:
        422: Missing required fields
        502: Directory rejected the update or roster refresh failed
    """
    try:
        roster = await service.update_member(member_id, draft)
    except DirectoryServiceError as e:
        logger.error("Failed to update member %s: %s", member_id, e)
        raise_app_error(MemberSaveError(t("errors.update_member")))
    engine.set_members(roster)
    return roster


__all__ = ["router"]
