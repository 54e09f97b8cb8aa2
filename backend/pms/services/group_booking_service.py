"""
团体预订服务 - 本体操作层
多间房作为一个整体创建、入住、退房和取消

团体是共享 group_id 的一组预订（按 group_index 排序），不单独持久化。
所有团体写操作在一个工作单元内提交：要么全部生效，要么全部不生效。
"""
from typing import List
from datetime import datetime
from decimal import Decimal
import logging
import uuid
from sqlalchemy.orm import Session
from pms.database import atomic
from pms.domain.reservation import ReservationTrigger, reservation_lifecycle
from pms.exceptions import (
    EmptyGroupError, InvalidDateRangeError, InvalidStateError,
    NotFoundError, RoomNotAvailableError
)
from pms.models.ontology import Reservation, ReservationStatus, RoomStatus
from pms.models.schemas import GroupBookingCreate
from pms.services.availability_service import AvailabilityService
from pms.services.reservation_service import ReservationService
from pms.services.room_service import RoomService
from pms.services.task_service import TaskService

logger = logging.getLogger(__name__)


class GroupBookingService:
    """团体预订服务"""

    def __init__(self, db: Session, availability_service: AvailabilityService,
                 reservation_service: ReservationService, room_service: RoomService,
                 task_service: TaskService):
        self.db = db
        self.availability = availability_service
        self.reservations = reservation_service
        self.rooms = room_service
        self.tasks = task_service

    def get_group_reservations(self, hotel_id: int, group_id: str) -> List[Reservation]:
        """获取团体成员，按 group_index 排序"""
        return self.db.query(Reservation).filter(
            Reservation.hotel_id == hotel_id,
            Reservation.group_id == group_id
        ).order_by(Reservation.group_index).all()

    def _require_group(self, hotel_id: int, group_id: str) -> List[Reservation]:
        members = self.get_group_reservations(hotel_id, group_id)
        if not members:
            raise NotFoundError("Group", group_id)
        return members

    def create_group_booking(self, data: GroupBookingCreate) -> str:
        """
        创建团体预订

        前置校验（任何写入之前）：
        1. 离店日期晚于入住日期
        2. 至少一间房
        3. 每间房属于该酒店且房型一致，同一房间不重复出现
        4. 每间房在共享日期区间内都可用

        Returns:
            新生成的 group_id
        """
        if data.check_out_date <= data.check_in_date:
            raise InvalidDateRangeError(data.check_in_date, data.check_out_date)

        if not data.reservations:
            raise EmptyGroupError()

        claimed = set()
        for item in data.reservations:
            self.reservations.require_room(data.hotel_id, item.room_id, item.room_type_id)
            if item.room_id in claimed:
                logger.warning(f"Group booking rejected: room {item.room_id} listed twice")
                raise RoomNotAvailableError(item.room_id, data.check_in_date, data.check_out_date)
            claimed.add(item.room_id)

            if not self.availability.is_room_available(
                data.hotel_id, item.room_id, data.check_in_date, data.check_out_date
            ):
                logger.warning(f"Group booking rejected: room {item.room_id} unavailable")
                raise RoomNotAvailableError(item.room_id, data.check_in_date, data.check_out_date)

        group_id = uuid.uuid4().hex
        group_size = len(data.reservations)
        now = datetime.now()
        issued: List[str] = []

        with atomic(self.db, "create group booking"):
            for index, item in enumerate(data.reservations, start=1):
                confirmation_number = self.reservations.generate_confirmation_number(exclude=issued)
                issued.append(confirmation_number)
                self.db.add(Reservation(
                    hotel_id=data.hotel_id,
                    confirmation_number=confirmation_number,
                    customer_id=data.customer_id,
                    room_id=item.room_id,
                    room_type_id=item.room_type_id,
                    check_in_date=data.check_in_date,
                    check_out_date=data.check_out_date,
                    number_of_guests=item.number_of_guests,
                    source=data.source,
                    status=ReservationStatus.PENDING,
                    total_price=item.total_price,
                    paid_amount=Decimal("0"),
                    notes=data.notes,
                    is_group_booking=True,
                    group_id=group_id,
                    group_size=group_size,
                    group_index=index,
                    created_at=now,
                    updated_at=now,
                ))

        logger.info(f"Created group booking {group_id} with {group_size} rooms")
        return group_id

    def _require_all_can(self, members: List[Reservation], trigger: str) -> ReservationStatus:
        """整组校验：任一成员不允许该动作则整组拒绝"""
        targets = set()
        for member in members:
            target = reservation_lifecycle(member.status).target_for(trigger)
            if target is None:
                logger.warning(
                    f"Group {member.group_id} {trigger} rejected: member {member.group_index} "
                    f"is {member.status.value}"
                )
                raise InvalidStateError(f"group {trigger}", member.status.value, member.id)
            targets.add(target)
        return ReservationStatus(targets.pop())

    def check_in_group(self, hotel_id: int, group_id: str) -> List[Reservation]:
        """团体入住：全部成员 -> checked-in，全部房间 -> occupied"""
        members = self._require_group(hotel_id, group_id)
        status = self._require_all_can(members, ReservationTrigger.CHECK_IN)
        now = datetime.now()

        with atomic(self.db, "check in group"):
            for member in members:
                member.status = status
                member.checked_in_at = now
                member.updated_at = now
                self.rooms.stage_room_status(member.room_id, RoomStatus.OCCUPIED, now)

        logger.info(f"Checked in group {group_id} ({len(members)} rooms)")
        return members

    def check_out_group(self, hotel_id: int, group_id: str) -> List[Reservation]:
        """团体退房：全部成员 -> checked-out，全部房间 -> dirty，每间房一条清洁任务"""
        members = self._require_group(hotel_id, group_id)
        status = self._require_all_can(members, ReservationTrigger.CHECK_OUT)
        now = datetime.now()

        with atomic(self.db, "check out group"):
            for member in members:
                member.status = status
                member.checked_out_at = now
                member.updated_at = now
                self.rooms.stage_room_status(member.room_id, RoomStatus.DIRTY, now)
                self.tasks.stage_cleaning_task(
                    hotel_id, member.room_id,
                    notes=f"团体退房清洁 - 预订 {member.confirmation_number}",
                    now=now,
                )

        logger.info(f"Checked out group {group_id} ({len(members)} rooms)")
        return members

    def cancel_group_booking(self, hotel_id: int, group_id: str) -> List[Reservation]:
        """取消团体预订：全部成员无条件置为 cancelled"""
        members = self._require_group(hotel_id, group_id)
        now = datetime.now()

        with atomic(self.db, "cancel group booking"):
            for member in members:
                member.status = ReservationStatus.CANCELLED
                member.updated_at = now

        logger.info(f"Cancelled group {group_id} ({len(members)} rooms)")
        return members

    def calculate_group_total(self, hotel_id: int, group_id: str) -> Decimal:
        """团体总价：各成员总价之和，缺失按 0 计"""
        return sum(
            (member.total_price or Decimal("0") for member in self.get_group_reservations(hotel_id, group_id)),
            Decimal("0"),
        )
