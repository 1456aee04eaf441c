"""
Grouping endpoints
==================

POST /api/v1/grouping/plan     -- group, route and validate a batch
POST /api/v1/grouping/validate -- admission check for a proposed group

Both are pure computations over the request body; nothing is stored.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool

from src.api.dependencies import get_settings
from src.api.middleware import limiter
from src.api.schemas import (
    ConfigOverrides,
    GroupResponse,
    LeftoverResponse,
    PlanRequest,
    PlanResponse,
    ValidateRequest,
    ValidationResponse,
    ViolationResponse,
)
from src.config import Settings, settings as _settings
from src.domain.clustering import group_id_for
from src.domain.entities import Group
from src.domain.policy import GroupingConfig
from src.domain.validation import validate
from src.services.grouping import GroupingEngine

router = APIRouter(prefix="/grouping", tags=["grouping"])


def _config(settings: Settings, overrides: ConfigOverrides | None) -> GroupingConfig:
    if overrides is None:
        return settings.grouping_config()
    return settings.grouping_config(**overrides.model_dump())


@router.post(
    "/plan",
    response_model=PlanResponse,
    summary="Group a batch of pending rides",
    responses={422: {"description": "Malformed rides or invalid thresholds."}},
)
@limiter.limit(_settings.api_rate_limit)
async def plan_batch(
    request: Request,
    body: PlanRequest,
    settings: Settings = Depends(get_settings),
):
    engine = GroupingEngine(_config(settings, body.config), settings.route_workers)
    plan = await run_in_threadpool(
        engine.plan,
        [r.to_domain() for r in body.rides],
        body.traffic.to_domain() if body.traffic else None,
        body.departure_time,
    )

    return PlanResponse(
        groups=[GroupResponse.from_domain(g) for g in plan.groups],
        leftovers=[
            LeftoverResponse(
                ride_id=left.ride_id,
                violation=(
                    ViolationResponse.from_domain(left.violation)
                    if left.violation
                    else None
                ),
            )
            for left in plan.leftovers
        ],
        max_group_size=plan.max_group_size,
        traffic_tier=plan.traffic_tier,
        assumed_light_traffic=plan.assumed_light_traffic,
    )


@router.post(
    "/validate",
    response_model=ValidationResponse,
    summary="Check whether rides may form a group",
)
@limiter.limit(_settings.api_rate_limit)
async def validate_group(
    request: Request,
    body: ValidateRequest,
    settings: Settings = Depends(get_settings),
):
    config = _config(settings, body.config)
    members = tuple(r.to_domain() for r in body.rides)
    report = validate(
        Group(id=group_id_for(members), members=members),
        driver=body.driver.to_domain() if body.driver else None,
        config=config,
    )
    return ValidationResponse(
        ok=report.ok,
        violations=[ViolationResponse.from_domain(v) for v in report.violations],
    )
