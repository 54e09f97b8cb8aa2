"""
本体对象定义 (Ontology Objects)
预订引擎的持久化实体：酒店、房型、房间、预订、清洁任务
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, ForeignKey, Text,
    Enum as SQLEnum, Boolean, Numeric, JSON, CheckConstraint, UniqueConstraint
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship
from pms.database import Base


# ============== 枚举定义 ==============

class RoomStatus(str, Enum):
    """房间状态枚举"""
    VACANT = "vacant"            # 空闲
    OCCUPIED = "occupied"        # 入住中
    DIRTY = "dirty"              # 待清洁
    MAINTENANCE = "maintenance"  # 维修中
    RESERVED = "reserved"        # 已预留


class ReservationStatus(str, Enum):
    """预订状态枚举"""
    PENDING = "pending"          # 待确认
    CONFIRMED = "confirmed"      # 已确认
    CHECKED_IN = "checked-in"    # 已入住
    CHECKED_OUT = "checked-out"  # 已退房
    CANCELLED = "cancelled"      # 已取消
    NO_SHOW = "no-show"          # 未到店


class ReservationSource(str, Enum):
    """预订渠道"""
    DIRECT = "direct"
    BOOKING_COM = "booking.com"
    AIRBNB = "airbnb"
    PHONE = "phone"
    WALK_IN = "walk-in"
    OTHER = "other"


class TaskType(str, Enum):
    """清洁任务类型"""
    CLEAN = "clean"              # 日常清洁
    DEEP_CLEAN = "deep-clean"    # 深度清洁
    TURNDOWN = "turndown"        # 夜床服务
    INSPECTION = "inspection"    # 查房


class TaskPriority(str, Enum):
    """任务优先级"""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, Enum):
    """任务状态"""
    PENDING = "pending"          # 待处理
    IN_PROGRESS = "in-progress"  # 进行中
    COMPLETED = "completed"      # 已完成


# 占用房间的预订状态
ACTIVE_RESERVATION_STATUSES = (
    ReservationStatus.PENDING,
    ReservationStatus.CONFIRMED,
    ReservationStatus.CHECKED_IN,
)

# 允许修改的预订状态
EDITABLE_RESERVATION_STATUSES = (
    ReservationStatus.PENDING,
    ReservationStatus.CONFIRMED,
)

WEEKDAY_NAMES = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"
)


# ============== 本体对象定义 ==============

class Hotel(Base):
    """
    酒店对象
    提供定价时使用的税率
    """
    __tablename__ = "hotels"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)           # 酒店名称
    tax_rate = Column(Numeric(5, 2))                     # 税率(百分比)，为空时使用默认税率
    currency = Column(String(3), default="USD")          # 币种
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    room_types = relationship("RoomType", back_populates="hotel")
    rooms = relationship("Room", back_populates="hotel")


class RoomType(Base):
    """
    房型对象
    定价规则：基础价格 < 星期价格 < 季节价格
    """
    __tablename__ = "room_types"

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False, index=True)
    name = Column(String(50), nullable=False)                # 房型名称
    description = Column(Text)                               # 描述
    base_price = Column(Numeric(10, 2), nullable=False)     # 基础价格
    capacity = Column(Integer, nullable=False, default=2)   # 最大入住人数
    weekday_pricing = Column(JSON)                          # 星期价格 {"friday": 120, ...}
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # 链接
    hotel = relationship("Hotel", back_populates="room_types")
    rooms = relationship("Room", back_populates="room_type")
    # 季节价格按列表顺序匹配，先匹配者生效
    seasonal_rates = relationship(
        "SeasonalRate",
        back_populates="room_type",
        order_by="SeasonalRate.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )


class SeasonalRate(Base):
    """
    季节价格区间
    起止日期均包含在内
    """
    __tablename__ = "seasonal_rates"

    id = Column(Integer, primary_key=True, index=True)
    room_type_id = Column(Integer, ForeignKey("room_types.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)   # 列表顺序
    start_date = Column(Date, nullable=False)               # 开始日期(含)
    end_date = Column(Date, nullable=False)                 # 结束日期(含)
    price = Column(Numeric(10, 2), nullable=False)          # 季节价格

    room_type = relationship("RoomType", back_populates="seasonal_rates")


class Room(Base):
    """
    房间对象
    房间号在酒店内唯一
    """
    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("hotel_id", "room_number", name="uq_room_hotel_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False, index=True)
    room_number = Column(String(10), nullable=False)               # 房间号
    floor = Column(Integer, nullable=False)                        # 楼层
    room_type_id = Column(Integer, ForeignKey("room_types.id"), nullable=False)
    status = Column(SQLEnum(RoomStatus), default=RoomStatus.VACANT, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # 链接
    hotel = relationship("Hotel", back_populates="rooms")
    room_type = relationship("RoomType", back_populates="rooms")
    reservations = relationship("Reservation", back_populates="room")
    tasks = relationship("HousekeepingTask", back_populates="room")


class Reservation(Base):
    """
    预订对象 - 一条预订占用一间房的 [check_in_date, check_out_date) 区间
    团体预订的成员共享 group_id，按 group_index 排序
    """
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="ck_reservation_date_order"),
    )

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False, index=True)
    confirmation_number = Column(String(20), unique=True, nullable=False, index=True)  # 确认号
    customer_id = Column(Integer, nullable=False, index=True)     # 客户(外部维护)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    room_type_id = Column(Integer, ForeignKey("room_types.id"), nullable=False)
    check_in_date = Column(Date, nullable=False)         # 入住日期
    check_out_date = Column(Date, nullable=False)        # 离店日期(不含)
    number_of_guests = Column(Integer, default=1)        # 入住人数
    source = Column(SQLEnum(ReservationSource), default=ReservationSource.DIRECT, nullable=False)
    status = Column(SQLEnum(ReservationStatus), default=ReservationStatus.PENDING, nullable=False)
    total_price = Column(Numeric(10, 2), default=0)      # 创建/修改时的总价快照
    paid_amount = Column(Numeric(10, 2), default=0)      # 已付金额
    notes = Column(Text)                                 # 备注

    # 团体预订
    is_group_booking = Column(Boolean, default=False, nullable=False)
    group_id = Column(String(32), index=True)
    group_size = Column(Integer)
    group_index = Column(Integer)                        # 从 1 开始

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
    checked_in_at = Column(DateTime)                     # 实际入住时间
    checked_out_at = Column(DateTime)                    # 实际退房时间

    # 链接
    room = relationship("Room", back_populates="reservations")
    room_type = relationship("RoomType")


class HousekeepingTask(Base):
    """
    清洁任务对象
    退房时自动生成
    """
    __tablename__ = "housekeeping_tasks"

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)
    task_type = Column(SQLEnum(TaskType), default=TaskType.CLEAN, nullable=False)
    priority = Column(SQLEnum(TaskPriority), default=TaskPriority.NORMAL, nullable=False)
    status = Column(SQLEnum(TaskStatus), default=TaskStatus.PENDING, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.now)
    completed_at = Column(DateTime)

    room = relationship("Room", back_populates="tasks")
