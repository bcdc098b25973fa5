"""SpecAlign - Test Generation Service

为选中的需求批量生成测试代码（模板 / LLM）。

锁的使用：
    1. 持锁读取项目与需求
    2. 释放锁后扫描代码库、逐条生成（可能调用远程 LLM）
    3. 持锁一次性写入全部生成结果
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Callable, Optional, Sequence

from specalign.core.errors import (
    InvalidInputError,
    SpecAlignError,
    StorageIOError,
    require_non_empty,
)
from specalign.database import queries
from specalign.database.config import Store
from specalign.database.models import GeneratedTest
from specalign.models.enums import GenerationMode, TestFramework
from specalign.models.spec_schemas import RequirementResponse
from specalign.models.test_schemas import GeneratedTestResponse, ProgressEvent, ProgressPhase
from specalign.services.generation.llm_generator import LLMClient
from specalign.services.generation.template_generator import (
    generate_jest_test,
    generate_pytest_test,
)
from specalign.services.progress import ProgressCallback, ProgressTracker, get_progress_tracker
from specalign.services.scanner import CodeSymbol, scan_codebase
from specalign.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

LLMClientFactory = Callable[[str], LLMClient]


def parse_framework(value: str) -> TestFramework:
    try:
        return TestFramework(value)
    except ValueError:
        raise InvalidInputError(f"Unsupported framework: {value}") from None


def parse_mode(value: str) -> GenerationMode:
    try:
        return GenerationMode(value)
    except ValueError:
        raise InvalidInputError(f"Unsupported mode: {value}") from None


def scan_symbols_best_effort(codebase_path: str, exclusions: Sequence[str]) -> list[CodeSymbol]:
    """扫描失败不影响生成，降级为空列表"""
    try:
        return scan_codebase(codebase_path, exclusions)
    except (SpecAlignError, OSError) as e:
        logger.warning(f"代码库扫描失败，按无上下文继续: {e}")
        return []


class GenerationService:
    """测试生成服务"""

    def __init__(
        self,
        store: Store,
        settings_service: Optional[SettingsService] = None,
        tracker: Optional[ProgressTracker] = None,
        llm_client_factory: Optional[LLMClientFactory] = None,
    ):
        self.store = store
        self.settings_service = settings_service or SettingsService()
        self.tracker = tracker or get_progress_tracker()
        self.llm_client_factory = llm_client_factory or LLMClient

    async def generate_tests(
        self,
        project_id: str,
        requirement_ids: Sequence[str],
        framework: str,
        mode: str,
        *,
        batch_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[GeneratedTestResponse]:
        """
        批量生成测试

        Args:
            project_id: 项目 ID
            requirement_ids: 需求 ID 列表（按顺序生成）
            framework: jest / pytest
            mode: template / llm
            batch_id: 进度批次 ID（默认自动生成）
            on_progress: 每条需求完成后回调

        Returns:
            生成的测试（与 requirement_ids 顺序一致）

        任何失败都会先发送 failed 进度事件再抛出，订阅方据此结束等待。
        """
        batch_id = batch_id or str(uuid.uuid4())
        try:
            return await self._generate_batch(
                project_id, requirement_ids, framework, mode, batch_id, on_progress
            )
        except Exception as e:
            logger.error(f"测试生成失败: batch={batch_id}, {e}")
            self._emit_failed(batch_id, len(requirement_ids or ()), e, on_progress)
            raise

    async def _generate_batch(
        self,
        project_id: str,
        requirement_ids: Sequence[str],
        framework: str,
        mode: str,
        batch_id: str,
        on_progress: Optional[ProgressCallback],
    ) -> list[GeneratedTestResponse]:
        require_non_empty(project_id, "Project ID")
        if not requirement_ids:
            raise InvalidInputError("No requirements selected")
        for req_id in requirement_ids:
            require_non_empty(req_id, "Requirement ID")
        test_framework = parse_framework(framework)
        generation_mode = parse_mode(mode)

        app_settings = self.settings_service.load_settings()
        llm_client = None
        if generation_mode == GenerationMode.LLM:
            if not app_settings.api_key.strip():
                raise InvalidInputError("API key is required for LLM mode. Set it in Settings.")
            llm_client = self.llm_client_factory(app_settings.api_key)

        with self.store.transaction() as session:
            codebase_path = queries.get_project(session, project_id).codebase_path
            requirements = [
                RequirementResponse.model_validate(queries.get_requirement(session, req_id))
                for req_id in requirement_ids
            ]

        symbols = await asyncio.to_thread(
            scan_symbols_best_effort, codebase_path, app_settings.scan_exclusions
        )

        total = len(requirements)
        generated: list[GeneratedTest] = []
        for index, req in enumerate(requirements):
            if llm_client is not None:
                code = await llm_client.generate(req, test_framework, symbols)
            elif test_framework == TestFramework.PYTEST:
                code = generate_pytest_test(req, symbols)
            else:
                code = generate_jest_test(req, symbols)

            generated.append(GeneratedTest(
                id=str(uuid.uuid4()),
                requirement_id=req.id,
                framework=test_framework,
                code=code,
                generation_mode=generation_mode,
            ))
            self._emit(ProgressEvent(
                batch_id=batch_id,
                phase=ProgressPhase.GENERATING,
                total=total,
                completed=index + 1,
                current_item=req.id,
            ), on_progress)

        with self.store.transaction() as session:
            for test in generated:
                queries.insert_generated_test(session, test)
            result = [GeneratedTestResponse.model_validate(t) for t in generated]

        self._emit(ProgressEvent(
            batch_id=batch_id,
            phase=ProgressPhase.COMPLETED,
            total=total,
            completed=total,
        ), on_progress)
        logger.info(f"测试生成完成: {len(result)} 个（{test_framework.value}/{generation_mode.value}）")
        return result

    def get_generated_tests(self, requirement_id: str) -> list[GeneratedTestResponse]:
        require_non_empty(requirement_id, "Requirement ID")
        with self.store.transaction() as session:
            return [
                GeneratedTestResponse.model_validate(t)
                for t in queries.get_generated_tests_for_requirement(session, requirement_id)
            ]

    def get_all_generated_tests(self, project_id: str) -> list[GeneratedTestResponse]:
        require_non_empty(project_id, "Project ID")
        with self.store.transaction() as session:
            return [
                GeneratedTestResponse.model_validate(t)
                for t in queries.get_generated_tests_for_project(session, project_id)
            ]

    def save_test_to_disk(self, test_id: str, path: str) -> str:
        """把测试代码写入文件（自动创建父目录），并记录文件路径"""
        require_non_empty(test_id, "Test ID")
        require_non_empty(path, "File path")

        with self.store.transaction() as session:
            code = queries.get_generated_test(session, test_id).code

        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(code, encoding="utf-8")
        except OSError as e:
            raise StorageIOError(f"Cannot write test file: {e}") from e

        with self.store.transaction() as session:
            queries.update_generated_test_path(session, test_id, path)
        logger.info(f"测试已保存: {test_id} -> {path}")
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
