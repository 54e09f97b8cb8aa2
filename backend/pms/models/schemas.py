"""
Pydantic 模式定义
用于引擎输入校验与结果返回
"""
from datetime import date
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field
from pms.models.ontology import ReservationSource, ReservationStatus


# ============== 定价 Schemas ==============

class NightlyRate(BaseModel):
    date: date
    price: Decimal


class PriceQuote(BaseModel):
    """住宿报价：逐晚明细 + 小计 + 税 + 总价"""
    nights: int
    breakdown: List[NightlyRate] = Field(default_factory=list)
    subtotal: Decimal
    tax: Decimal
    total: Decimal


# ============== 预订 Schemas ==============

class ReservationCreate(BaseModel):
    hotel_id: int
    customer_id: int
    room_id: int
    room_type_id: int
    check_in_date: date
    check_out_date: date
    number_of_guests: int = Field(default=1, ge=1)
    source: ReservationSource = ReservationSource.DIRECT
    total_price: Decimal = Field(default=Decimal("0"), ge=0)
    paid_amount: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None


class ReservationUpdate(BaseModel):
    """预订修改补丁：只写入显式设置的字段"""
    customer_id: Optional[int] = None
    room_id: Optional[int] = None
    room_type_id: Optional[int] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    number_of_guests: Optional[int] = Field(None, ge=1)
    source: Optional[ReservationSource] = None
    total_price: Optional[Decimal] = Field(None, ge=0)
    paid_amount: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class ReservationFilters(BaseModel):
    start_date: Optional[date] = None      # check_in_date >= start_date
    end_date: Optional[date] = None        # check_out_date <= end_date
    status: Optional[ReservationStatus] = None
    source: Optional[ReservationSource] = None
    customer_id: Optional[int] = None


# ============== 团体预订 Schemas ==============

class GroupBookingItem(BaseModel):
    room_id: int
    room_type_id: int
    number_of_guests: int = Field(default=1, ge=1)
    total_price: Decimal = Field(default=Decimal("0"), ge=0)


class GroupBookingCreate(BaseModel):
    hotel_id: int
    customer_id: int
    check_in_date: date
    check_out_date: date
    source: ReservationSource = ReservationSource.DIRECT
    reservations: List[GroupBookingItem] = Field(default_factory=list)
    notes: Optional[str] = None


# ============== 可用性 Schemas ==============

class RoomTypeAvailabilityRequest(BaseModel):
    room_type_id: int
    quantity: int = Field(..., ge=1)


class RoomTypeAvailabilityResult(BaseModel):
    room_type_id: int
    requested: int
    available: int
    is_available: bool


class AlternativeRoomType(BaseModel):
    """替代房型；price_comparison 为相对原房型基础价格的百分比差"""
    room_type_id: int
    name: str
    base_price: Decimal
    capacity: int
    available_count: int
    price_comparison: Decimal
