"""Pydantic schemas for tenant operational records."""
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from carfit.db.models.enums import RecordStatus, VehicleStatus


class RecordRead(BaseModel):
    id: UUID
    tenant_id: UUID
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class VehicleCreate(BaseModel):
    registration_number: str = Field(..., min_length=1)
    make: Optional[str] = None
    model: Optional[str] = None
    customer_name: str = Field(..., min_length=1)
    customer_phone: Optional[str] = None
    accessories: Optional[str] = None
    status: VehicleStatus = VehicleStatus.PENDING
    expected_delivery: Optional[date] = None


class VehicleUpdate(BaseModel):
    registration_number: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    accessories: Optional[str] = None
    status: Optional[VehicleStatus] = None
    expected_delivery: Optional[date] = None


class VehicleRead(RecordRead):
    registration_number: str
    make: Optional[str] = None
    model: Optional[str] = None
    customer_name: str
    customer_phone: Optional[str] = None
    accessories: Optional[str] = None
    status: VehicleStatus
    expected_delivery: Optional[date] = None


class ServiceJobCreate(BaseModel):
    vehicle_id: Optional[UUID] = None
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    status: RecordStatus = RecordStatus.PENDING
    scheduled_for: Optional[date] = None


class ServiceJobUpdate(BaseModel):
    vehicle_id: Optional[UUID] = None
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[RecordStatus] = None
    scheduled_for: Optional[date] = None


class ServiceJobRead(RecordRead):
    vehicle_id: Optional[UUID] = None
    title: str
    description: Optional[str] = None
    status: RecordStatus
    scheduled_for: Optional[date] = None


class CustomerRequirementCreate(BaseModel):
    customer_name: str = Field(..., min_length=1)
    customer_phone: Optional[str] = None
    description: str = Field(..., min_length=1)
    status: RecordStatus = RecordStatus.PENDING


class CustomerRequirementUpdate(BaseModel):
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    description: Optional[str] = None
    status: Optional[RecordStatus] = None


class CustomerRequirementRead(RecordRead):
    customer_name: str
    customer_phone: Optional[str] = None
    description: str
    status: RecordStatus


class CallFollowUpCreate(BaseModel):
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    notes: Optional[str] = None
    status: RecordStatus = RecordStatus.PENDING
    follow_up_on: Optional[date] = None


class CallFollowUpUpdate(BaseModel):
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[RecordStatus] = None
    follow_up_on: Optional[date] = None


class CallFollowUpRead(RecordRead):
    customer_name: str
    customer_phone: str
    notes: Optional[str] = None
    status: RecordStatus
    follow_up_on: Optional[date] = None
