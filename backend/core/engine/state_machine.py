"""
core/engine/state_machine.py

状态机引擎 - 声明式状态转换校验
"""
from typing import Dict, List, Optional
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateTransition:
    """
    状态转换定义

    Attributes:
        from_state: 源状态
        to_state: 目标状态
        trigger: 触发动作
    """

    from_state: str
    to_state: str
    trigger: str


@dataclass
class StateMachineConfig:
    """
    状态机配置

    Attributes:
        name: 状态机名称
        states: 所有状态的列表
        transitions: 转换列表
        initial_state: 初始状态
    """

    name: str
    states: List[str]
    transitions: List[StateTransition]
    initial_state: str

    def __post_init__(self):
        if self.initial_state not in self.states:
            raise ValueError(f"{self.name}: 初始状态 '{self.initial_state}' 未定义")
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"{self.name}: 转换 {t.from_state} -> {t.to_state} 引用了未定义的状态"
                )


class StateMachine:
    """
    状态机引擎

    持久化的实体每次加载时以当前状态构建一个状态机实例，
    由它判断触发动作是否合法以及目标状态。

    Example:
        >>> machine = StateMachine(
        ...     config=StateMachineConfig(
        ...         name="Room",
        ...         states=["vacant", "occupied", "dirty"],
        ...         transitions=[StateTransition("vacant", "occupied", "check_in")],
        ...         initial_state="vacant"
        ...     )
        ... )
        >>> machine.target_for("check_in")
        'occupied'
    """

    def __init__(self, config: StateMachineConfig, current_state: Optional[str] = None):
        self._config = config
        self._current_state = current_state if current_state is not None else config.initial_state
        if self._current_state not in config.states:
            raise ValueError(f"{config.name}: 未知状态 '{self._current_state}'")

        # 构建转换映射: from_state -> {trigger: transition}
        self._transition_map: Dict[str, Dict[str, StateTransition]] = {}
        for t in config.transitions:
            self._transition_map.setdefault(t.from_state, {})[t.trigger] = t

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def current_state(self) -> str:
        """获取当前状态"""
        return self._current_state

    def target_for(self, trigger: str) -> Optional[str]:
        """获取触发动作在当前状态下的目标状态，不允许时返回 None"""
        transition = self._transition_map.get(self._current_state, {}).get(trigger)
        return transition.to_state if transition else None

    def can_fire(self, trigger: str) -> bool:
        """检查当前状态下是否可以执行触发动作"""
        return self.target_for(trigger) is not None

    def allowed_triggers(self) -> List[str]:
        """当前状态下可用的触发动作"""
        return sorted(self._transition_map.get(self._current_state, {}))

    def transition_to(self, target_state: str, trigger: str) -> bool:
        """
        执行状态转换

        Args:
            target_state: 目标状态
            trigger: 触发动作

        Returns:
            True 如果转换成功
        """
        if self.target_for(trigger) != target_state:
            logger.warning(
                f"Invalid transition: {self._current_state} -> {target_state} (trigger: {trigger})"
            )
            return False

        previous_state = self._current_state
        self._current_state = target_state
        logger.debug(f"{self.name} transition: {previous_state} -> {target_state} (trigger: {trigger})")
        return True


__all__ = [
    "StateTransition",
    "StateMachineConfig",
    "StateMachine",
]
