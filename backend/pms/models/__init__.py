# Ontology Models
from pms.models.ontology import (
    Hotel, RoomType, SeasonalRate, Room, Reservation, HousekeepingTask
)

__all__ = [
    'Hotel', 'RoomType', 'SeasonalRate', 'Room', 'Reservation', 'HousekeepingTask'
]
