"""SpecAlign - Database Configuration

数据库连接配置与 Store（单锁 + 事务）

所有需要原子性的读写序列（例如"删除旧需求 → 插入新需求 → 更新解析时间"，
或"插入报告 + 全部差异项"）都必须放在同一个 Store.transaction() 中完成。
长耗时 I/O（扫描代码库、执行测试进程、调用 LLM）不得在事务内进行。
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from specalign.core.config import settings
from specalign.core.errors import DatabaseError

logger = logging.getLogger(__name__)

# 创建 Base 类
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    """SQLite 默认不启用外键，级联删除依赖它"""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(database_url: str) -> Engine:
    """创建引擎（SQLite 特殊配置：跨线程 + 外键）"""
    is_sqlite = database_url.startswith("sqlite")
    engine = create_engine(
        database_url,
        echo=False,
        connect_args={"check_same_thread": False} if is_sqlite else {},
    )
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class Store:
    """共享存储

    一个互斥锁保护所有会话；transaction() 内的操作要么全部提交，
    要么全部回滚，其他调用方不会观察到中间状态。
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
        )
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """获取锁并开启事务，正常退出时提交，异常时整体回滚"""
        with self._lock:
            session = self._session_factory()
            try:
                yield session
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.warning(f"事务回滚（数据库错误）: {e}")
                raise DatabaseError(str(e)) from e
            except Exception:
                session.rollback()
                logger.warning("事务回滚", exc_info=True)
                raise
            finally:
                session.close()

    def create_all(self) -> None:
        """建表（幂等）"""
        from specalign.database import models  # noqa: F401 - 注册模型

        db_file = self.engine.url.database
        if self.engine.url.get_backend_name() == "sqlite" and db_file and db_file != ":memory:":
            Path(db_file).parent.mkdir(parents=True, exist_ok=True)
        Base.metadata.create_all(bind=self.engine)


# 默认引擎与 Store
engine = make_engine(settings.database_url)
store = Store(engine)


def get_store() -> Store:
    """获取 Store（依赖注入）"""
    return store


def init_db() -> None:
    store.create_all()
