"""
Pytest 配置和共享 fixtures
"""
import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pms.config import Settings
from pms.container import build_reservation_engine
from pms.database import Base
from pms.models import ontology  # noqa
from pms.models.ontology import (
    Hotel, RoomType, SeasonalRate, Room, RoomStatus,
    Reservation, ReservationStatus, ReservationSource
)


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def test_settings():
    return Settings(DATABASE_URL="sqlite:///:memory:", DEFAULT_TAX_RATE=Decimal("0"))


@pytest.fixture
def engine(db_session, test_settings):
    """按会话装配的预订引擎"""
    return build_reservation_engine(db_session, test_settings)


# ============== 实体相关 Fixtures ==============

@pytest.fixture
def sample_hotel(db_session):
    """创建测试酒店"""
    hotel = Hotel(name="测试酒店", tax_rate=Decimal("10"), currency="USD")
    db_session.add(hotel)
    db_session.commit()
    db_session.refresh(hotel)
    return hotel


@pytest.fixture
def make_room_type(db_session, sample_hotel):
    """房型工厂"""
    def _make(name="Standard", base_price=Decimal("100"), capacity=2,
              weekday_pricing=None, seasons=None, hotel=None):
        room_type = RoomType(
            hotel_id=(hotel or sample_hotel).id,
            name=name,
            base_price=base_price,
            capacity=capacity,
            weekday_pricing=weekday_pricing,
        )
        for start, end, price in seasons or []:
            room_type.seasonal_rates.append(
                SeasonalRate(start_date=start, end_date=end, price=price)
            )
        db_session.add(room_type)
        db_session.commit()
        db_session.refresh(room_type)
        return room_type
    return _make


@pytest.fixture
def make_room(db_session, sample_hotel):
    """房间工厂"""
    def _make(room_type, room_number="101", floor=1, status=RoomStatus.VACANT, hotel=None):
        room = Room(
            hotel_id=(hotel or sample_hotel).id,
            room_number=room_number,
            floor=floor,
            room_type_id=room_type.id,
            status=status,
        )
        db_session.add(room)
        db_session.commit()
        db_session.refresh(room)
        return room
    return _make


@pytest.fixture
def make_reservation(db_session):
    """直接写库的预订工厂（绕过服务校验，用于构造既有数据）"""
    counter = {"n": 0}

    def _make(room, check_in_date, check_out_date, status=ReservationStatus.CONFIRMED,
              customer_id=1, total_price=Decimal("100"), group_id=None, group_index=None,
              group_size=None):
        counter["n"] += 1
        reservation = Reservation(
            hotel_id=room.hotel_id,
            confirmation_number=f"TEST{counter['n']:04d}",
            customer_id=customer_id,
            room_id=room.id,
            room_type_id=room.room_type_id,
            check_in_date=check_in_date,
            check_out_date=check_out_date,
            number_of_guests=1,
            source=ReservationSource.DIRECT,
            status=status,
            total_price=total_price,
            is_group_booking=group_id is not None,
            group_id=group_id,
            group_index=group_index,
            group_size=group_size,
        )
        db_session.add(reservation)
        db_session.commit()
        db_session.refresh(reservation)
        return reservation
    return _make


@pytest.fixture
def standard_type(make_room_type):
    return make_room_type("Standard", Decimal("100"), capacity=2)


@pytest.fixture
def room_101(make_room, standard_type):
    return make_room(standard_type, "101")


@pytest.fixture
def july_stay():
    """2024-07-10 .. 2024-07-15"""
    return date(2024, 7, 10), date(2024, 7, 15)
