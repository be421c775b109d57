from __future__ import annotations

import grpc

from portfolio.rpc.pb import portfolio_pb2, portfolio_pb2_grpc


class PortfolioClient:
    """Client for ``jorgejr568.portfolio_grpc.PortfolioService``.

    Returns the protobuf response messages. Failed calls raise ``grpc.RpcError``
    carrying the server's status code.
    """

    def __init__(self, target: str, timeout: float | None = None, channel: grpc.Channel | None = None) -> None:
        self.target = target
        self.timeout = timeout
        self._channel = channel or grpc.insecure_channel(target)
        self._stub = portfolio_pb2_grpc.PortfolioServiceStub(self._channel)

    def get_all_skills(self):
        return self._stub.GetAllSkills(portfolio_pb2.GetAllSkillsRequest(), timeout=self.timeout)

    def get_skill(self, skill_id: int):
        return self._stub.GetSkill(portfolio_pb2.GetSkillRequest(id=skill_id), timeout=self.timeout)

    def get_all_experiences(self):
        return self._stub.GetAllExperiences(portfolio_pb2.GetAllExperiencesRequest(), timeout=self.timeout)

    def get_experience(self, experience_id: int):
        return self._stub.GetExperience(portfolio_pb2.GetExperienceRequest(id=experience_id), timeout=self.timeout)

    def get_all_educations(self):
        return self._stub.GetAllEducations(portfolio_pb2.GetAllEducationsRequest(), timeout=self.timeout)

    def get_education(self, education_id: int):
        return self._stub.GetEducation(portfolio_pb2.GetEducationRequest(id=education_id), timeout=self.timeout)

    def wait_ready(self, timeout: float) -> None:
        """Block until the channel connects; raises ``grpc.FutureTimeoutError``."""

        grpc.channel_ready_future(self._channel).result(timeout=timeout)

    def close(self) -> None:
        self._channel.close()
