"""FastAPI dependencies resolving the services held on app.state."""

from fastapi import Request

from committee.services.contribution_service import ContributionMatrixEngine
from committee.services.member_service import MemberService


def get_engine(request: Request) -> ContributionMatrixEngine:
    return request.app.state.engine


def get_member_service(request: Request) -> MemberService:
    return request.app.state.member_service
