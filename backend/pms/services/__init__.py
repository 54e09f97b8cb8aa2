# Business Services
from pms.services.price_service import PriceService, calculate_stay_price
from pms.services.availability_service import AvailabilityService
from pms.services.room_service import RoomService
from pms.services.task_service import TaskService
from pms.services.reservation_service import ReservationService
from pms.services.group_booking_service import GroupBookingService

__all__ = [
    'PriceService', 'calculate_stay_price', 'AvailabilityService', 'RoomService',
    'TaskService', 'ReservationService', 'GroupBookingService'
]
