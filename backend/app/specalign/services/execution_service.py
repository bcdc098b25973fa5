"""SpecAlign - Test Execution Service

按顺序执行选中的生成测试并记录结果。

没有落盘路径的测试先写入临时目录，执行后删除；
测试进程在锁外运行，全部结果最后在一个事务中写入。
"""
from __future__ import annotations

import logging
import tempfile
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from specalign.core.errors import InvalidInputError, StorageIOError, require_non_empty
from specalign.database import queries
from specalign.database.config import Store
from specalign.database.models import TestResult
from specalign.models.enums import TestFramework, TestStatus
from specalign.models.test_schemas import ProgressEvent, ProgressPhase, TestResultResponse
from specalign.services.execution.test_runner import TestRunner
from specalign.services.progress import ProgressCallback, ProgressTracker, get_progress_tracker

logger = logging.getLogger(__name__)

TEMP_DIR_NAME = "specalign-tests"


@dataclass(frozen=True)
class _PendingTest:
    id: str
    framework: TestFramework
    code: str
    file_path: Optional[str]


def temp_test_path(test_id: str, framework: TestFramework, temp_root: Optional[Path] = None) -> Path:
    """临时测试文件路径（文件名满足各框架的默认收集规则）"""
    root = (temp_root or Path(tempfile.gettempdir())) / TEMP_DIR_NAME
    stem = test_id.replace("-", "")
    if framework == TestFramework.PYTEST:
        return root / f"test_{stem}.py"
    return root / f"{stem}.test.js"


class ExecutionService:
    """测试执行服务"""

    def __init__(
        self,
        store: Store,
        runner: Optional[TestRunner] = None,
        tracker: Optional[ProgressTracker] = None,
        temp_root: Optional[Path] = None,
    ):
        self.store = store
        self.runner = runner or TestRunner()
        self.tracker = tracker or get_progress_tracker()
        self.temp_root = temp_root

    async def execute_tests(
        self,
        project_id: str,
        test_ids: Sequence[str],
        *,
        batch_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[TestResultResponse]:
        """
        执行测试

        Returns:
            执行结果（与 test_ids 顺序一致）

        任何失败都会先发送 failed 进度事件再抛出，订阅方据此结束等待。
        """
        batch_id = batch_id or str(uuid.uuid4())
        try:
            return await self._execute_batch(project_id, test_ids, batch_id, on_progress)
        except Exception as e:
            logger.error(f"测试执行失败: batch={batch_id}, {e}")
            self._emit_failed(batch_id, len(test_ids or ()), e, on_progress)
            raise

    async def _execute_batch(
        self,
        project_id: str,
        test_ids: Sequence[str],
        batch_id: str,
        on_progress: Optional[ProgressCallback],
    ) -> list[TestResultResponse]:
        require_non_empty(project_id, "Project ID")
        if not test_ids:
            raise InvalidInputError("No tests selected for execution")
        for test_id in test_ids:
            require_non_empty(test_id, "Test ID")

        with self.store.transaction() as session:
            codebase_path = queries.get_project(session, project_id).codebase_path
            pending = []
            for test_id in test_ids:
                test = queries.get_generated_test(session, test_id)
                pending.append(_PendingTest(
                    id=test.id,
                    framework=TestFramework(test.framework),
                    code=test.code,
                    file_path=test.file_path,
                ))

        total = len(pending)
        results: list[TestResult] = []
        for index, test in enumerate(pending):
            temp_path = None
            if test.file_path:
                test_file = test.file_path
            else:
                temp_path = self._write_temp_file(test)
                test_file = str(temp_path)

            try:
                outcome = await self.runner.run(test.framework, test_file, codebase_path)
            finally:
                if temp_path is not None:
                    temp_path.unlink(missing_ok=True)

            results.append(TestResult(
                id=str(uuid.uuid4()),
                generated_test_id=test.id,
                status=outcome.status,
                execution_time_ms=outcome.duration_ms,
                stdout=outcome.stdout,
                stderr=outcome.stderr,
                executed_at=datetime.now(timezone.utc),
            ))
            self._emit(ProgressEvent(
                batch_id=batch_id,
                phase=ProgressPhase.RUNNING,
                total=total,
                completed=index + 1,
                current_item=test.id,
            ), on_progress)

        with self.store.transaction() as session:
            for result in results:
                queries.insert_test_result(session, result)
            response = [TestResultResponse.model_validate(r) for r in results]

        self._emit(ProgressEvent(
            batch_id=batch_id,
            phase=ProgressPhase.COMPLETED,
            total=total,
            completed=total,
        ), on_progress)
        passed = sum(1 for r in response if r.status == TestStatus.PASSED)
        logger.info(f"测试执行完成: {passed}/{total} 通过")
        return response

    def get_test_results(self, project_id: str) -> list[TestResultResponse]:
        require_non_empty(project_id, "Project ID")
        with self.store.transaction() as session:
            return [
                TestResultResponse.model_validate(r)
                for r in queries.get_test_results_for_project(session, project_id)
            ]

    def get_test_result(self, result_id: str) -> TestResultResponse:
        require_non_empty(result_id, "Result ID")
        with self.store.transaction() as session:
            return TestResultResponse.model_validate(queries.get_test_result(session, result_id))

    def _write_temp_file(self, test: _PendingTest) -> Path:
        path = temp_test_path(test.id, test.framework, self.temp_root)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(test.code, encoding="utf-8")
        except OSError as e:
            raise StorageIOError(f"Cannot write temporary test file: {e}") from e
        return path

    def _emit(self, event: ProgressEvent, on_progress: Optional[ProgressCallback]) -> None:
        self.tracker.publish(event)
        if on_progress is not None:
            on_progress(event)

    def _emit_failed(
        self, batch_id: str, total: int, error: Exception, on_progress: Optional[ProgressCallback]
    ) -> None:
        last = self.tracker.latest(batch_id)
        self._emit(ProgressEvent(
            batch_id=batch_id,
            phase=ProgressPhase.FAILED,
            total=total,
            completed=last.completed if last is not None else 0,
            message=str(error),
        ), on_progress)
