"""
房间服务 - 本体操作层
管理 Room 和 RoomType 对象的读取、房态写入与替代房型查找
"""
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
import logging
from sqlalchemy.orm import Session
from pms.database import atomic
from pms.exceptions import NotFoundError
from pms.models.ontology import Room, RoomType, RoomStatus
from pms.models.schemas import AlternativeRoomType
from pms.services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)


class RoomService:
    """房间服务"""

    def __init__(self, db: Session, availability_service: AvailabilityService):
        self.db = db
        self.availability = availability_service

    # ============== 房型操作 ==============

    def get_room_types(self, hotel_id: int) -> List[RoomType]:
        """获取酒店所有房型"""
        return self.db.query(RoomType).filter(
            RoomType.hotel_id == hotel_id
        ).order_by(RoomType.base_price, RoomType.id).all()

    def get_room_type(self, room_type_id: int) -> Optional[RoomType]:
        """获取单个房型"""
        return self.db.get(RoomType, room_type_id)

    # ============== 房间操作 ==============

    def get_rooms(self, hotel_id: int, status: Optional[RoomStatus] = None,
                  room_type_id: Optional[int] = None) -> List[Room]:
        """获取房间列表"""
        query = self.db.query(Room).filter(Room.hotel_id == hotel_id)
        if status:
            query = query.filter(Room.status == status)
        if room_type_id:
            query = query.filter(Room.room_type_id == room_type_id)
        return query.order_by(Room.room_number).all()

    def get_room(self, room_id: int) -> Optional[Room]:
        """获取单个房间"""
        return self.db.get(Room, room_id)

    def get_room_by_number(self, hotel_id: int, room_number: str) -> Optional[Room]:
        """根据房间号获取房间"""
        return self.db.query(Room).filter(
            Room.hotel_id == hotel_id,
            Room.room_number == room_number
        ).first()

    def stage_room_status(self, room_id: int, status: RoomStatus, now: Optional[datetime] = None) -> Room:
        """在当前会话中暂存房态变更（不提交），供原子操作组合使用"""
        room = self.get_room(room_id)
        if not room:
            raise NotFoundError("Room", room_id)
        room.status = status
        room.updated_at = now or datetime.now()
        return room

    def update_room_status(self, room_id: int, status: RoomStatus) -> Room:
        """更新房态"""
        with atomic(self.db, "update room status"):
            room = self.stage_room_status(room_id, status)
        logger.info(f"Room {room.room_number} status -> {status.value}")
        return room

    # ============== 替代房型 ==============

    def find_alternative_room_types(self, hotel_id: int, check_in_date: date, check_out_date: date,
                                    room_type_id: int, quantity: int) -> List[AlternativeRoomType]:
        """
        查找可替代的房型

        规则：
        1. 只推荐容量不小于原房型的房型（只升不降）
        2. 可用数量必须覆盖全部需求，不提供部分满足
        3. 按基础价格升序排列；价格差按基础价格计算，不按日期定价
        """
        original = self.get_room_type(room_type_id)
        if not original or original.hotel_id != hotel_id:
            raise NotFoundError("RoomType", room_type_id)

        candidates = self.db.query(RoomType).filter(
            RoomType.hotel_id == hotel_id,
            RoomType.id != room_type_id,
            RoomType.capacity >= original.capacity
        ).all()

        alternatives = []
        for candidate in candidates:
            available_count = len(self.availability.get_available_rooms(
                hotel_id, check_in_date, check_out_date, candidate.id
            ))
            if available_count < quantity:
                continue
            alternatives.append(AlternativeRoomType(
                room_type_id=candidate.id,
                name=candidate.name,
                base_price=candidate.base_price,
                capacity=candidate.capacity,
                available_count=available_count,
                price_comparison=self._price_comparison(original.base_price, candidate.base_price),
            ))

        alternatives.sort(key=lambda alt: alt.base_price)
        logger.info(
            f"Found {len(alternatives)} alternatives for room type {original.name} x{quantity}"
        )
        return alternatives

    @staticmethod
    def _price_comparison(original_price: Decimal, candidate_price: Decimal) -> Decimal:
        """相对原价格的百分比差，保留两位小数"""
        if not original_price:
            return Decimal("0.00")
        delta = (Decimal(candidate_price) - Decimal(original_price)) / Decimal(original_price) * 100
        return delta.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
