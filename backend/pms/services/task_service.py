"""
任务服务 - 本体操作层
退房后为房间生成清洁任务
"""
from typing import List, Optional
from datetime import datetime
import logging
from sqlalchemy.orm import Session
from pms.database import atomic
from pms.models.ontology import (
    HousekeepingTask, TaskType, TaskPriority, TaskStatus
)

logger = logging.getLogger(__name__)


class TaskService:
    """任务服务"""

    def __init__(self, db: Session):
        self.db = db

    def get_tasks(self, hotel_id: int, status: Optional[TaskStatus] = None,
                  room_id: Optional[int] = None) -> List[HousekeepingTask]:
        """获取任务列表"""
        query = self.db.query(HousekeepingTask).filter(HousekeepingTask.hotel_id == hotel_id)
        if status:
            query = query.filter(HousekeepingTask.status == status)
        if room_id:
            query = query.filter(HousekeepingTask.room_id == room_id)
        return query.order_by(HousekeepingTask.created_at.desc(), HousekeepingTask.id.desc()).all()

    def stage_cleaning_task(self, hotel_id: int, room_id: int, notes: Optional[str] = None,
                            now: Optional[datetime] = None) -> HousekeepingTask:
        """在当前会话中暂存一条待处理的普通优先级清洁任务（不提交）"""
        task = HousekeepingTask(
            hotel_id=hotel_id,
            room_id=room_id,
            task_type=TaskType.CLEAN,
            priority=TaskPriority.NORMAL,
            status=TaskStatus.PENDING,
            notes=notes,
            created_at=now or datetime.now(),
        )
        self.db.add(task)
        return task

    def create_cleaning_task(self, hotel_id: int, room_id: int, notes: Optional[str] = None) -> HousekeepingTask:
        """创建清洁任务"""
        with atomic(self.db, "create cleaning task"):
            task = self.stage_cleaning_task(hotel_id, room_id, notes)
        self.db.refresh(task)
        logger.info(f"Created cleaning task {task.id} for room {room_id}")
        return task
