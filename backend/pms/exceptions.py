"""
预订引擎异常定义

所有异常都继承 ReservationError(ValueError)，
调用方既可以按具体类型处理，也可以沿用 except ValueError。
"""
from typing import Any, Dict, Optional


class ErrorType:
    """错误类型编码"""

    INVALID_DATE_RANGE = "invalid_date_range"
    ROOM_NOT_AVAILABLE = "room_not_available"
    ROOM_TYPE_MISMATCH = "room_type_mismatch"
    NOT_FOUND = "not_found"
    NOT_EDITABLE = "not_editable"
    INVALID_STATE = "invalid_state"
    EMPTY_GROUP = "empty_group"
    STORE_FAILURE = "store_failure"
    AVAILABILITY_CHECK_FAILED = "availability_check_failed"


class ReservationError(ValueError):
    """
    预订引擎错误基类

    Attributes:
        error_type: 错误类型（ErrorType 常量）
        message: 错误信息
        context: 附加上下文
    """

    error_type = ErrorType.STORE_FAILURE

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.error_type,
            "message": self.message,
            "context": self.context,
        }


class InvalidDateRangeError(ReservationError):
    """离店日期不晚于入住日期"""

    error_type = ErrorType.INVALID_DATE_RANGE

    def __init__(self, check_in_date, check_out_date):
        super().__init__(
            f"离店日期 {check_out_date} 必须晚于入住日期 {check_in_date}",
            {"check_in_date": str(check_in_date), "check_out_date": str(check_out_date)},
        )


class RoomNotAvailableError(ReservationError):
    """房间在所选日期已被占用"""

    error_type = ErrorType.ROOM_NOT_AVAILABLE

    def __init__(self, room_id: int, check_in_date=None, check_out_date=None):
        self.room_id = room_id
        super().__init__(
            f"房间 {room_id} 在所选日期不可用",
            {
                "room_id": room_id,
                "check_in_date": str(check_in_date) if check_in_date else None,
                "check_out_date": str(check_out_date) if check_out_date else None,
            },
        )


class RoomTypeMismatchError(ReservationError):
    """预订房型与房间实际房型不一致"""

    error_type = ErrorType.ROOM_TYPE_MISMATCH

    def __init__(self, room_id: int, room_type_id: int, actual_room_type_id: int):
        self.room_id = room_id
        super().__init__(
            f"房间 {room_id} 的房型为 {actual_room_type_id}，与预订房型 {room_type_id} 不符",
            {"room_id": room_id, "room_type_id": room_type_id,
             "actual_room_type_id": actual_room_type_id},
        )


class NotFoundError(ReservationError):
    """实体不存在"""

    error_type = ErrorType.NOT_FOUND

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} 不存在", {"entity": entity, "id": entity_id})


class NotEditableError(ReservationError):
    """预订状态不允许修改"""

    error_type = ErrorType.NOT_EDITABLE

    def __init__(self, reservation_id: int, status: str):
        self.status = status
        super().__init__(
            f"状态为 {status} 的预订不可修改",
            {"reservation_id": reservation_id, "status": status},
        )


class InvalidStateError(ReservationError):
    """状态不允许执行该操作（含团体操作）"""

    error_type = ErrorType.INVALID_STATE

    def __init__(self, action: str, status: str, reservation_id: Optional[int] = None):
        self.action = action
        self.status = status
        super().__init__(
            f"状态为 {status} 的预订不允许执行 {action}",
            {"action": action, "status": status, "reservation_id": reservation_id},
        )


class EmptyGroupError(ReservationError):
    """团体预订没有任何房间"""

    error_type = ErrorType.EMPTY_GROUP

    def __init__(self):
        super().__init__("团体预订至少需要包含一间房")


class StoreFailure(ReservationError):
    """存储层失败，附带操作上下文"""

    error_type = ErrorType.STORE_FAILURE

    def __init__(self, operation: str, original_error: Optional[Exception] = None):
        self.operation = operation
        self.original_error = original_error
        detail = f": {original_error}" if original_error else ""
        super().__init__(f"{operation} 失败{detail}", {"operation": operation})


class AvailabilityCheckFailed(StoreFailure):
    """可用性查询失败，不返回部分结果"""

    error_type = ErrorType.AVAILABILITY_CHECK_FAILED

    def __init__(self, original_error: Optional[Exception] = None):
        super().__init__("availability check", original_error)
