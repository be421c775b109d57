from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

import grpc
import structlog

from portfolio.errors import RecordNotFoundError
from portfolio.models.schemas import Education, Experience, Skill
from portfolio.repositories.base import Repository
from portfolio.rpc.messages import education_to_proto, experience_to_proto, skill_to_proto
from portfolio.rpc.pb import portfolio_pb2, portfolio_pb2_grpc

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class PortfolioService(portfolio_pb2_grpc.PortfolioServiceServicer):
    """Serves the portfolio catalog.

    This is the only place repository errors become RPC status codes:
    ``RecordNotFoundError`` becomes NOT_FOUND, anything else INTERNAL with the
    error message as the status detail.
    """

    def __init__(
        self,
        skills: Repository[Skill],
        experiences: Repository[Experience],
        educations: Repository[Education],
    ) -> None:
        self._skills = skills
        self._experiences = experiences
        self._educations = educations

    def _call(self, context: grpc.ServicerContext, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except RecordNotFoundError as exc:
            context.abort(grpc.StatusCode.NOT_FOUND, str(exc))
        except Exception as exc:
            logger.exception("rpc_internal_error", error=str(exc))
            context.abort(grpc.StatusCode.INTERNAL, str(exc))
        raise AssertionError("context.abort() returned")  # pragma: no cover

    def GetAllSkills(
        self, request: portfolio_pb2.GetAllSkillsRequest, context: grpc.ServicerContext
    ) -> portfolio_pb2.GetAllSkillsResponse:
        skills = self._call(context, self._skills.list)
        return portfolio_pb2.GetAllSkillsResponse(skills=[skill_to_proto(s) for s in skills])

    def GetSkill(
        self, request: portfolio_pb2.GetSkillRequest, context: grpc.ServicerContext
    ) -> portfolio_pb2.GetSkillResponse:
        skill = self._call(context, lambda: self._skills.get(request.id))
        return portfolio_pb2.GetSkillResponse(skill=skill_to_proto(skill))

    def GetAllExperiences(
        self, request: portfolio_pb2.GetAllExperiencesRequest, context: grpc.ServicerContext
    ) -> portfolio_pb2.GetAllExperiencesResponse:
        experiences = self._call(context, self._experiences.list)
        return portfolio_pb2.GetAllExperiencesResponse(
            experiences=[experience_to_proto(e) for e in experiences]
        )

    def GetExperience(
        self, request: portfolio_pb2.GetExperienceRequest, context: grpc.ServicerContext
    ) -> portfolio_pb2.GetExperienceResponse:
        experience = self._call(context, lambda: self._experiences.get(request.id))
        return portfolio_pb2.GetExperienceResponse(experience=experience_to_proto(experience))

    def GetAllEducations(
        self, request: portfolio_pb2.GetAllEducationsRequest, context: grpc.ServicerContext
    ) -> portfolio_pb2.GetAllEducationsResponse:
        educations = self._call(context, self._educations.list)
        return portfolio_pb2.GetAllEducationsResponse(
            educations=[education_to_proto(e) for e in educations]
        )

    def GetEducation(
        self, request: portfolio_pb2.GetEducationRequest, context: grpc.ServicerContext
    ) -> portfolio_pb2.GetEducationResponse:
        education = self._call(context, lambda: self._educations.get(request.id))
        return portfolio_pb2.GetEducationResponse(education=education_to_proto(education))


def add_portfolio_service_to_server(service: PortfolioService, server: grpc.Server) -> None:
    portfolio_pb2_grpc.add_PortfolioServiceServicer_to_server(service, server)
