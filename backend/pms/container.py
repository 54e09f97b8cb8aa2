"""
服务装配
以一个数据库会话显式构建全部服务，协作者通过构造参数传入
"""
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.orm import Session
from pms.config import Settings, settings as default_settings
from pms.services.availability_service import AvailabilityService
from pms.services.group_booking_service import GroupBookingService
from pms.services.price_service import PriceService
from pms.services.reservation_service import ReservationService
from pms.services.room_service import RoomService
from pms.services.task_service import TaskService


@dataclass
class ReservationEngine:
    """预订引擎：同一会话上的一组服务"""
    db: Session
    prices: PriceService
    availability: AvailabilityService
    rooms: RoomService
    tasks: TaskService
    reservations: ReservationService
    groups: GroupBookingService


def build_reservation_engine(db: Session, config: Optional[Settings] = None) -> ReservationEngine:
    """
    构建预订引擎

    Example:
        >>> db = SessionLocal()
        >>> engine = build_reservation_engine(db)
        >>> engine.reservations.create_reservation(data)
    """
    config = config or default_settings
    availability = AvailabilityService(db)
    rooms = RoomService(db, availability)
    tasks = TaskService(db)
    reservations = ReservationService(db, availability, rooms, tasks, config)
    groups = GroupBookingService(db, availability, reservations, rooms, tasks)
    return ReservationEngine(
        db=db,
        prices=PriceService(db, config),
        availability=availability,
        rooms=rooms,
        tasks=tasks,
        reservations=reservations,
        groups=groups,
    )
