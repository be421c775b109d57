from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from google.protobuf import json_format
from google.protobuf.message import Message

from portfolio.api.dependencies import get_portfolio_client
from portfolio.rpc.client import PortfolioClient

router = APIRouter(prefix="/v1", tags=["portfolio"])


def to_json(message: Message) -> dict[str, Any]:
    """Protobuf JSON mapping: lowerCamelCase keys, RFC 3339 timestamps, int64 as strings.

    Unset scalars are emitted with their zero value; unset messages are left out.
    """

    return json_format.MessageToDict(message, always_print_fields_with_no_presence=True)


# Plain `def` endpoints: the gRPC client blocks, so FastAPI runs these in its threadpool.


@router.get("/skills")
def list_skills(client: PortfolioClient = Depends(get_portfolio_client)) -> dict[str, Any]:
    return to_json(client.get_all_skills())


@router.get("/skills/{skill_id}")
def get_skill(skill_id: int, client: PortfolioClient = Depends(get_portfolio_client)) -> dict[str, Any]:
    return to_json(client.get_skill(skill_id))


@router.get("/experiences")
def list_experiences(client: PortfolioClient = Depends(get_portfolio_client)) -> dict[str, Any]:
    return to_json(client.get_all_experiences())


@router.get("/experiences/{experience_id}")
def get_experience(experience_id: int, client: PortfolioClient = Depends(get_portfolio_client)) -> dict[str, Any]:
    return to_json(client.get_experience(experience_id))


@router.get("/educations")
def list_educations(client: PortfolioClient = Depends(get_portfolio_client)) -> dict[str, Any]:
    return to_json(client.get_all_educations())


@router.get("/educations/{education_id}")
def get_education(education_id: int, client: PortfolioClient = Depends(get_portfolio_client)) -> dict[str, Any]:
    return to_json(client.get_education(education_id))
