"""
价格服务 - 本体操作层
根据房型的定价规则计算住宿报价

每晚价格优先级：
1. 季节价格（日期落在某个季节区间内，首个匹配的区间生效，且不再叠加星期价格）
2. 星期价格（该星期几设置了价格）
3. 基础价格
"""
from typing import List, Optional
from datetime import date, timedelta
from decimal import Decimal
from sqlalchemy.orm import Session
from pms.config import Settings, settings as default_settings
from pms.exceptions import InvalidDateRangeError, NotFoundError
from pms.models.ontology import Hotel, RoomType, WEEKDAY_NAMES
from pms.models.schemas import NightlyRate, PriceQuote


def _to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def get_nightly_price(room_type: RoomType, night: date) -> Decimal:
    """获取房型在某一晚的价格"""
    for season in room_type.seasonal_rates or []:
        if season.start_date <= night <= season.end_date:
            return _to_decimal(season.price)

    weekday_pricing = room_type.weekday_pricing or {}
    weekday_price = weekday_pricing.get(WEEKDAY_NAMES[night.weekday()])
    # 未设置或为 0 视为没有星期价格
    if weekday_price:
        return _to_decimal(weekday_price)

    return _to_decimal(room_type.base_price)


def calculate_stay_price(room_type: RoomType, check_in_date: date,
                         check_out_date: date, tax_rate=Decimal("0")) -> PriceQuote:
    """
    计算住宿报价（纯函数，不访问数据库）

    Args:
        room_type: 房型（含季节价格和星期价格）
        check_in_date: 入住日期
        check_out_date: 离店日期(不含)
        tax_rate: 税率百分比，如 10 表示 10%

    Returns:
        PriceQuote 逐晚明细、小计、税额、总价
    """
    nights = (check_out_date - check_in_date).days
    breakdown: List[NightlyRate] = []
    subtotal = Decimal("0")

    for offset in range(max(nights, 0)):
        night = check_in_date + timedelta(days=offset)
        price = get_nightly_price(room_type, night)
        breakdown.append(NightlyRate(date=night, price=price))
        subtotal += price

    tax = subtotal * _to_decimal(tax_rate) / Decimal("100")
    return PriceQuote(
        nights=max(nights, 0),
        breakdown=breakdown,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
    )


class PriceService:
    """价格服务"""

    def __init__(self, db: Session, config: Optional[Settings] = None):
        self.db = db
        self.config = config or default_settings

    def _get_room_type(self, room_type_id: int) -> RoomType:
        room_type = self.db.get(RoomType, room_type_id)
        if not room_type:
            raise NotFoundError("RoomType", room_type_id)
        return room_type

    def get_tax_rate(self, hotel_id: int) -> Decimal:
        """获取酒店税率，未设置时使用默认税率"""
        hotel = self.db.get(Hotel, hotel_id)
        if hotel is not None and hotel.tax_rate is not None:
            return _to_decimal(hotel.tax_rate)
        return _to_decimal(self.config.DEFAULT_TAX_RATE)

    def quote_for_room_type(self, room_type_id: int, check_in_date: date,
                            check_out_date: date, tax_rate=None) -> PriceQuote:
        """按房型计算住宿报价"""
        if check_out_date <= check_in_date:
            raise InvalidDateRangeError(check_in_date, check_out_date)

        room_type = self._get_room_type(room_type_id)
        if tax_rate is None:
            tax_rate = self.get_tax_rate(room_type.hotel_id)
        return calculate_stay_price(room_type, check_in_date, check_out_date, tax_rate)

    def get_price_calendar(self, room_type_id: int, start_date: date, end_date: date) -> List[NightlyRate]:
        """获取价格日历（起止日期均包含）"""
        if end_date < start_date:
            raise InvalidDateRangeError(start_date, end_date)

        room_type = self._get_room_type(room_type_id)
        result = []
        current_date = start_date
        while current_date <= end_date:
            result.append(NightlyRate(date=current_date, price=get_nightly_price(room_type, current_date)))
            current_date += timedelta(days=1)
        return result
