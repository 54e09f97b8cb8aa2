"""
预订服务 - 本体操作层
管理 Reservation 对象的生命周期：创建、修改、确认、取消、入住、退房

单条预订的入住/退房中，预订写入、房态写入和清洁任务分别提交；
团体操作的原子提交见 GroupBookingService。
"""
from typing import Iterable, List, Optional
from datetime import datetime
import logging
import secrets
import string
import time
from sqlalchemy.orm import Session
from pms.config import Settings, settings as default_settings
from pms.database import atomic
from pms.domain.reservation import ReservationTrigger, reservation_lifecycle
from pms.exceptions import (
    InvalidDateRangeError, InvalidStateError, NotEditableError,
    NotFoundError, RoomNotAvailableError, RoomTypeMismatchError, StoreFailure
)
from pms.models.ontology import (
    Reservation, Room, ReservationStatus, RoomStatus, EDITABLE_RESERVATION_STATUSES
)
from pms.models.schemas import ReservationCreate, ReservationUpdate, ReservationFilters
from pms.services.availability_service import AvailabilityService
from pms.services.room_service import RoomService
from pms.services.task_service import TaskService

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase

# 补丁中允许显式置空的字段
_NULLABLE_FIELDS = {"notes"}


def _to_base36(number: int) -> str:
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


class ReservationService:
    """预订服务"""

    def __init__(self, db: Session, availability_service: AvailabilityService,
                 room_service: RoomService, task_service: TaskService,
                 config: Optional[Settings] = None):
        self.db = db
        self.availability = availability_service
        self.rooms = room_service
        self.tasks = task_service
        self.config = config or default_settings

    # ============== 确认号 ==============

    def _new_confirmation_number(self) -> str:
        """确认号：毫秒时间戳(36进制) + 4 位随机字符，全部大写"""
        timestamp = _to_base36(int(time.time() * 1000))
        random_part = "".join(secrets.choice(_BASE36) for _ in range(4))
        return f"{timestamp}{random_part}"

    def generate_confirmation_number(self, exclude: Iterable[str] = ()) -> str:
        """
        生成确认号

        数据库中已存在或与 exclude 重复时重新生成，
        超过 CONFIRMATION_NO_MAX_ATTEMPTS 次仍冲突则抛出 StoreFailure。
        """
        excluded = set(exclude)
        for _ in range(self.config.CONFIRMATION_NO_MAX_ATTEMPTS):
            candidate = self._new_confirmation_number()
            if candidate in excluded:
                continue
            if self.get_by_confirmation_number(candidate) is None:
                return candidate
            logger.warning(f"Confirmation number collision: {candidate}")
        raise StoreFailure("generate confirmation number")

    # ============== 查询 ==============

    def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        """获取单个预订"""
        return self.db.get(Reservation, reservation_id)

    def _require(self, reservation_id: int) -> Reservation:
        reservation = self.get_reservation(reservation_id)
        if not reservation:
            raise NotFoundError("Reservation", reservation_id)
        return reservation

    def get_by_confirmation_number(self, confirmation_number: str) -> Optional[Reservation]:
        """根据确认号获取预订"""
        return self.db.query(Reservation).filter(
            Reservation.confirmation_number == confirmation_number
        ).first()

    def search_by_confirmation_number(self, hotel_id: int, confirmation_number: str) -> List[Reservation]:
        """按确认号搜索（不区分大小写）"""
        return self.db.query(Reservation).filter(
            Reservation.hotel_id == hotel_id,
            Reservation.confirmation_number == confirmation_number.strip().upper()
        ).all()

    def get_reservations(self, hotel_id: int, filters: Optional[ReservationFilters] = None) -> List[Reservation]:
        """获取预订列表，按入住日期倒序"""
        query = self.db.query(Reservation).filter(Reservation.hotel_id == hotel_id)

        if filters:
            if filters.start_date:
                query = query.filter(Reservation.check_in_date >= filters.start_date)
            if filters.end_date:
                query = query.filter(Reservation.check_out_date <= filters.end_date)
            if filters.status:
                query = query.filter(Reservation.status == filters.status)
            if filters.source:
                query = query.filter(Reservation.source == filters.source)
            if filters.customer_id:
                query = query.filter(Reservation.customer_id == filters.customer_id)

        return query.order_by(Reservation.check_in_date.desc(), Reservation.id.desc()).all()

    # ============== 创建与修改 ==============

    def require_room(self, hotel_id: int, room_id: int, room_type_id: Optional[int] = None) -> Room:
        """
        获取酒店内的房间，不存在或属于其他酒店时抛出 NotFoundError

        给定 room_type_id 时还要求与房间实际房型一致（RoomTypeMismatchError）
        """
        room = self.rooms.get_room(room_id)
        if not room or room.hotel_id != hotel_id:
            raise NotFoundError("Room", room_id)
        if room_type_id is not None and room.room_type_id != room_type_id:
            raise RoomTypeMismatchError(room_id, room_type_id, room.room_type_id)
        return room

    def create_reservation(self, data: ReservationCreate) -> Reservation:
        """
        创建预订
        1. 校验日期区间
        2. 校验房间属于该酒店且房型一致
        3. 校验房间在区间内可用
        4. 生成确认号，以 pending 状态保存
        """
        if data.check_out_date <= data.check_in_date:
            raise InvalidDateRangeError(data.check_in_date, data.check_out_date)

        self.require_room(data.hotel_id, data.room_id, data.room_type_id)

        if not self.availability.is_room_available(
            data.hotel_id, data.room_id, data.check_in_date, data.check_out_date
        ):
            logger.warning(
                f"Room {data.room_id} unavailable for {data.check_in_date}..{data.check_out_date}"
            )
            raise RoomNotAvailableError(data.room_id, data.check_in_date, data.check_out_date)

        now = datetime.now()
        reservation = Reservation(
            **data.model_dump(),
            confirmation_number=self.generate_confirmation_number(),
            status=ReservationStatus.PENDING,
            is_group_booking=False,
            created_at=now,
            updated_at=now,
        )

        with atomic(self.db, "create reservation"):
            self.db.add(reservation)
        self.db.refresh(reservation)
        logger.info(
            f"Created reservation {reservation.confirmation_number} for room {reservation.room_id}"
        )
        return reservation

    def update_reservation(self, reservation_id: int, data: ReservationUpdate) -> Reservation:
        """
        修改预订
        仅 pending/confirmed 状态可修改；日期或房间变化时重新校验可用性（排除自身）
        """
        reservation = self._require(reservation_id)

        if reservation.status not in EDITABLE_RESERVATION_STATUSES:
            logger.warning(
                f"Rejected edit of reservation {reservation.confirmation_number} "
                f"in status {reservation.status.value}"
            )
            raise NotEditableError(reservation.id, reservation.status.value)

        update_data = {
            key: value for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in _NULLABLE_FIELDS
        }

        # 换房时房型跟随新房间；单独修改房型时须与当前房间一致
        if {"room_id", "room_type_id"} & update_data.keys():
            room = self.require_room(
                reservation.hotel_id,
                update_data.get("room_id", reservation.room_id),
                update_data.get("room_type_id"),
            )
            update_data["room_type_id"] = room.room_type_id

        if {"check_in_date", "check_out_date", "room_id"} & update_data.keys():
            check_in_date = update_data.get("check_in_date", reservation.check_in_date)
            check_out_date = update_data.get("check_out_date", reservation.check_out_date)
            room_id = update_data.get("room_id", reservation.room_id)

            if check_out_date <= check_in_date:
                raise InvalidDateRangeError(check_in_date, check_out_date)

            if not self.availability.is_room_available(
                reservation.hotel_id, room_id, check_in_date, check_out_date,
                exclude_reservation_id=reservation.id
            ):
                raise RoomNotAvailableError(room_id, check_in_date, check_out_date)

        with atomic(self.db, "update reservation"):
            for key, value in update_data.items():
                setattr(reservation, key, value)
            reservation.updated_at = datetime.now()

        self.db.refresh(reservation)
        logger.info(f"Updated reservation {reservation.confirmation_number}: {sorted(update_data)}")
        return reservation

    # ============== 状态流转 ==============

    def _next_status(self, reservation: Reservation, trigger: str) -> ReservationStatus:
        """按生命周期状态机计算目标状态，不允许时抛出 InvalidStateError"""
        target = reservation_lifecycle(reservation.status).target_for(trigger)
        if target is None:
            logger.warning(
                f"Rejected {trigger} for reservation {reservation.confirmation_number} "
                f"in status {reservation.status.value}"
            )
            raise InvalidStateError(trigger, reservation.status.value, reservation.id)
        return ReservationStatus(target)

    def _apply_status(self, reservation_id: int, trigger: str, operation: str) -> Reservation:
        reservation = self._require(reservation_id)
        status = self._next_status(reservation, trigger)
        previous = reservation.status

        with atomic(self.db, operation):
            reservation.status = status
            reservation.updated_at = datetime.now()

        logger.info(
            f"Reservation {reservation.confirmation_number}: {previous.value} -> {status.value}"
        )
        return reservation

    def confirm_reservation(self, reservation_id: int) -> Reservation:
        """确认预订（pending -> confirmed）"""
        return self._apply_status(reservation_id, ReservationTrigger.CONFIRM, "confirm reservation")

    def cancel_reservation(self, reservation_id: int) -> Reservation:
        """取消预订：无论当前状态如何都置为 cancelled"""
        return self._apply_status(reservation_id, ReservationTrigger.CANCEL, "cancel reservation")

    def mark_no_show(self, reservation_id: int) -> Reservation:
        """标记未到"""
        return self._apply_status(reservation_id, ReservationTrigger.MARK_NO_SHOW, "mark no-show")

    def check_in(self, reservation_id: int) -> Reservation:
        """
        办理入住
        业务联动：预订 -> checked-in，房间 -> occupied（两次独立提交）
        """
        reservation = self._require(reservation_id)
        status = self._next_status(reservation, ReservationTrigger.CHECK_IN)
        now = datetime.now()

        with atomic(self.db, "check in"):
            reservation.status = status
            reservation.checked_in_at = now
            reservation.updated_at = now

        self.rooms.update_room_status(reservation.room_id, RoomStatus.OCCUPIED)
        logger.info(f"Checked in reservation {reservation.confirmation_number}")
        return reservation

    def check_out(self, reservation_id: int) -> Reservation:
        """
        办理退房
        业务联动：预订 -> checked-out，房间 -> dirty，生成清洁任务（依次提交）
        """
        reservation = self._require(reservation_id)
        status = self._next_status(reservation, ReservationTrigger.CHECK_OUT)
        now = datetime.now()

        with atomic(self.db, "check out"):
            reservation.status = status
            reservation.checked_out_at = now
            reservation.updated_at = now

        self.rooms.update_room_status(reservation.room_id, RoomStatus.DIRTY)
        self.tasks.create_cleaning_task(
            reservation.hotel_id, reservation.room_id,
            notes=f"退房清洁 - 预订 {reservation.confirmation_number}"
        )
        logger.info(f"Checked out reservation {reservation.confirmation_number}")
        return reservation
