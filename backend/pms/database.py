"""
数据库配置 - SQLAlchemy 持久化层
提供会话工厂与原子工作单元
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from pms.config import Settings, settings as default_settings
from pms.exceptions import StoreFailure

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(config: Optional[Settings] = None) -> Engine:
    """根据配置创建数据库引擎"""
    config = config or default_settings
    connect_args = {}
    if config.DATABASE_URL.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(config.DATABASE_URL, connect_args=connect_args, echo=config.DEBUG)


engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """依赖注入：获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """初始化数据库表"""
    from pms.models import ontology  # noqa
    bind = bind or engine
    Base.metadata.create_all(bind=bind)

    # SQLite 启用 WAL 模式以提高并发性能
    if bind.dialect.name == "sqlite" and bind.url.database not in (None, "", ":memory:"):
        with bind.connect() as conn:
            conn.execute(text("PRAGMA journal_mode=WAL"))
            conn.execute(text("PRAGMA synchronous=NORMAL"))
            conn.commit()


@contextmanager
def atomic(db: Session, operation: str) -> Iterator[Session]:
    """
    原子工作单元

    块内暂存的所有写入在退出时一次提交；任何异常都会回滚整个单元。
    SQLAlchemy 异常包装为 StoreFailure，业务异常原样抛出。

    Example:
        >>> with atomic(db, "check_in_group"):
        ...     reservation.status = ReservationStatus.CHECKED_IN
        ...     room.status = RoomStatus.OCCUPIED
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{operation} rolled back: {e}", exc_info=True)
        raise StoreFailure(operation, e) from e
    except Exception:
        db.rollback()
        raise
