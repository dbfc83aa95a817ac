"""Tenant-scoped CRUD endpoints for workshop records."""
from typing import Any, Callable, List, Optional, Type
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from carfit.api.deps import get_db_session
from carfit.auth.context import TenantContext
from carfit.auth.tenant import require_subscription_access
from carfit.db.models.records import CallFollowUp, CustomerRequirement, ServiceJob, Vehicle
from carfit.repositories.record_repo import RecordRepo
from carfit.schemas.records import (
    CallFollowUpCreate,
    CallFollowUpRead,
    CallFollowUpUpdate,
    CustomerRequirementCreate,
    CustomerRequirementRead,
    CustomerRequirementUpdate,
    ServiceJobCreate,
    ServiceJobRead,
    ServiceJobUpdate,
    VehicleCreate,
    VehicleRead,
    VehicleUpdate,
)
from carfit.services.notifications import notify_vehicle_status

AfterUpdate = Callable[[Any, Optional[Any], BackgroundTasks], None]


def _notify_on_status_change(
    vehicle: Vehicle, previous_status: Optional[Any], background: BackgroundTasks
) -> None:
    if previous_status is None or vehicle.status == previous_status:
        return
    background.add_task(
        notify_vehicle_status,
        str(vehicle.tenant_id),
        str(vehicle.id),
        vehicle.registration_number,
        vehicle.status.value,
        vehicle.customer_phone,
    )


def build_record_router(
    prefix: str,
    model: Type[Any],
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    read_schema: Type[BaseModel],
    after_update: Optional[AfterUpdate] = None,
) -> APIRouter:
    """List/get/create/update/delete routes for one tenant-owned model."""

    router = APIRouter(prefix=prefix, tags=[prefix.strip("/")])

    @router.get("", response_model=List[read_schema])
    async def list_records(
        ctx: TenantContext = Depends(require_subscription_access),
        db: AsyncSession = Depends(get_db_session),
    ):
        return await RecordRepo(db, model).list(ctx)

    @router.get("/{record_id}", response_model=read_schema)
    async def get_record(
        record_id: UUID,
        ctx: TenantContext = Depends(require_subscription_access),
        db: AsyncSession = Depends(get_db_session),
    ):
        return await RecordRepo(db, model).get(ctx, record_id)

    @router.post("", response_model=read_schema, status_code=status.HTTP_201_CREATED)
    async def create_record(
        body: create_schema,
        ctx: TenantContext = Depends(require_subscription_access),
        db: AsyncSession = Depends(get_db_session),
    ):
        return await RecordRepo(db, model).create(ctx, body.model_dump())

    @router.patch("/{record_id}", response_model=read_schema)
    async def update_record(
        record_id: UUID,
        body: update_schema,
        background: BackgroundTasks,
        ctx: TenantContext = Depends(require_subscription_access),
        db: AsyncSession = Depends(get_db_session),
    ):
        repo = RecordRepo(db, model)
        values = body.model_dump(exclude_unset=True)
        previous_status = None
        if "status" in values:
            previous_status = (await repo.get(ctx, record_id)).status
        record = await repo.update(ctx, record_id, values)
        if after_update is not None:
            after_update(record, previous_status, background)
        return record

    @router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_record(
        record_id: UUID,
        ctx: TenantContext = Depends(require_subscription_access),
        db: AsyncSession = Depends(get_db_session),
    ):
        await RecordRepo(db, model).delete(ctx, record_id)

    return router


vehicles_router = build_record_router(
    "/vehicles",
    Vehicle,
    VehicleCreate,
    VehicleUpdate,
    VehicleRead,
    after_update=_notify_on_status_change,
)
service_jobs_router = build_record_router(
    "/service-jobs", ServiceJob, ServiceJobCreate, ServiceJobUpdate, ServiceJobRead
)
requirements_router = build_record_router(
    "/customer-requirements",
    CustomerRequirement,
    CustomerRequirementCreate,
    CustomerRequirementUpdate,
    CustomerRequirementRead,
)
follow_ups_router = build_record_router(
    "/call-follow-ups",
    CallFollowUp,
    CallFollowUpCreate,
    CallFollowUpUpdate,
    CallFollowUpRead,
)
