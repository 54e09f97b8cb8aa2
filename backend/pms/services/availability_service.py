"""
可用性服务 - 本体操作层
房间可用性校验与可分配房间搜索

可分配房间搜索对每个房间单独校验一次，复杂度为 O(房间数 × 单房预订数)，
在单个酒店的规模下可以接受；团体预订和替代房型查找会多次调用。
"""
from typing import List, Optional
from datetime import date
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from pms.domain.reservation import ranges_overlap
from pms.exceptions import AvailabilityCheckFailed, StoreFailure
from pms.models.ontology import (
    Reservation, Room, RoomStatus, ACTIVE_RESERVATION_STATUSES
)
from pms.models.schemas import RoomTypeAvailabilityRequest, RoomTypeAvailabilityResult

logger = logging.getLogger(__name__)


class AvailabilityService:
    """可用性服务"""

    def __init__(self, db: Session):
        self.db = db

    def get_active_reservations(self, hotel_id: int, room_id: int) -> List[Reservation]:
        """获取房间的有效预订（待确认、已确认、已入住）"""
        try:
            return self.db.query(Reservation).filter(
                Reservation.hotel_id == hotel_id,
                Reservation.room_id == room_id,
                Reservation.status.in_(ACTIVE_RESERVATION_STATUSES)
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load reservations for room {room_id}: {e}", exc_info=True)
            raise AvailabilityCheckFailed(e) from e

    def is_room_available(self, hotel_id: int, room_id: int, check_in_date: date,
                          check_out_date: date, exclude_reservation_id: Optional[int] = None) -> bool:
        """
        检查房间在 [check_in_date, check_out_date) 是否可用

        Args:
            exclude_reservation_id: 修改预订时排除自身

        Raises:
            AvailabilityCheckFailed: 查询失败
        """
        for reservation in self.get_active_reservations(hotel_id, room_id):
            if exclude_reservation_id is not None and reservation.id == exclude_reservation_id:
                continue
            if ranges_overlap(check_in_date, check_out_date,
                              reservation.check_in_date, reservation.check_out_date):
                logger.debug(
                    f"Room {room_id} conflicts with reservation {reservation.confirmation_number}"
                )
                return False
        return True

    def get_available_rooms(self, hotel_id: int, check_in_date: date, check_out_date: date,
                            room_type_id: Optional[int] = None) -> List[Room]:
        """获取日期区间内可分配的房间（排除维修中），按房间号排序"""
        try:
            query = self.db.query(Room).filter(
                Room.hotel_id == hotel_id,
                Room.status != RoomStatus.MAINTENANCE
            )
            if room_type_id is not None:
                query = query.filter(Room.room_type_id == room_type_id)
            rooms = query.order_by(Room.room_number).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load rooms for hotel {hotel_id}: {e}", exc_info=True)
            raise StoreFailure("get available rooms", e) from e

        return [
            room for room in rooms
            if self.is_room_available(hotel_id, room.id, check_in_date, check_out_date)
        ]

    def check_room_type_availability(self, hotel_id: int, check_in_date: date, check_out_date: date,
                                     requests: List[RoomTypeAvailabilityRequest]) -> List[RoomTypeAvailabilityResult]:
        """按房型检查可用数量是否满足需求"""
        results = []
        for request in requests:
            available = len(self.get_available_rooms(
                hotel_id, check_in_date, check_out_date, request.room_type_id
            ))
            results.append(RoomTypeAvailabilityResult(
                room_type_id=request.room_type_id,
                requested=request.quantity,
                available=available,
                is_available=available >= request.quantity,
            ))
        return results
