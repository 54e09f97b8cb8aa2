"""
pms/domain - 领域规则

- reservation: 预订生命周期状态机
"""
from pms.domain.reservation import (
    ReservationTrigger,
    reservation_lifecycle,
    ranges_overlap,
)

__all__ = [
    "ReservationTrigger",
    "reservation_lifecycle",
    "ranges_overlap",
]
