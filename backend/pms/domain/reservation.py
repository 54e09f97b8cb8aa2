"""
pms/domain/reservation.py

预订生命周期 - 基于 core 状态机引擎

    pending ──confirm──> confirmed
    pending/confirmed ──check_in──> checked-in ──check_out──> checked-out
    pending/confirmed ──mark_no_show──> no-show
    任意状态 ──cancel──> cancelled

取消可从任何状态发起（包括已入住、已退房），与现有业务行为保持一致。
"""
from datetime import date

from core.engine.state_machine import StateMachine, StateMachineConfig, StateTransition
from pms.models.ontology import ReservationStatus


class ReservationTrigger:
    """预订触发动作"""
    CONFIRM = "confirm"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    CANCEL = "cancel"
    MARK_NO_SHOW = "mark_no_show"


_S = ReservationStatus

_TRANSITIONS = [
    StateTransition(_S.PENDING.value, _S.CONFIRMED.value, ReservationTrigger.CONFIRM),
    StateTransition(_S.PENDING.value, _S.CHECKED_IN.value, ReservationTrigger.CHECK_IN),
    StateTransition(_S.CONFIRMED.value, _S.CHECKED_IN.value, ReservationTrigger.CHECK_IN),
    StateTransition(_S.CHECKED_IN.value, _S.CHECKED_OUT.value, ReservationTrigger.CHECK_OUT),
    StateTransition(_S.PENDING.value, _S.NO_SHOW.value, ReservationTrigger.MARK_NO_SHOW),
    StateTransition(_S.CONFIRMED.value, _S.NO_SHOW.value, ReservationTrigger.MARK_NO_SHOW),
] + [
    StateTransition(status.value, _S.CANCELLED.value, ReservationTrigger.CANCEL)
    for status in ReservationStatus
]

RESERVATION_LIFECYCLE = StateMachineConfig(
    name="Reservation",
    states=[status.value for status in ReservationStatus],
    transitions=_TRANSITIONS,
    initial_state=_S.PENDING.value,
)


def reservation_lifecycle(status: ReservationStatus) -> StateMachine:
    """以预订当前状态构建状态机"""
    return StateMachine(RESERVATION_LIFECYCLE, current_state=ReservationStatus(status).value)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """
    半开区间 [start, end) 重叠判断

    首尾相接（一方的离店日等于另一方的入住日）不算重叠。
    """
    return a_start < b_end and a_end > b_start
