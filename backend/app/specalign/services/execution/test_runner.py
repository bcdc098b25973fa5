"""SpecAlign - Test Runner

调用外部测试框架进程执行单个测试文件：
- pytest: <python> -m pytest <file> -v
- jest:   npx jest <file> --no-coverage --verbose
- 硬超时（asyncio.wait_for），超时杀死进程并返回 error
- communicate() 在等待退出的同时读取 stdout/stderr，避免管道缓冲区写满死锁
"""
from __future__ import annotations

import asyncio
import logging
import sys
import time
from typing import Optional

from pydantic import BaseModel, Field

from specalign.core.config import settings
from specalign.models.enums import TestFramework, TestStatus

logger = logging.getLogger(__name__)


class ExecutionResult(BaseModel):
    """单次执行结果"""

    status: TestStatus
    duration_ms: int = Field(default=0, description="执行耗时（毫秒）")
    stdout: str = Field(default="", description="标准输出")
    stderr: str = Field(default="", description="标准错误")
    killed_by_timeout: bool = Field(default=False, description="是否因超时被杀死")


def _npx_command() -> str:
    return "npx.cmd" if sys.platform.startswith("win") else "npx"


def build_command(framework: TestFramework, test_file_path: str, python_bin: Optional[str] = None) -> list[str]:
    """构建测试框架命令行"""
    if framework == TestFramework.PYTEST:
        python = python_bin or settings.PYTHON_BIN or sys.executable
        return [python, "-m", "pytest", test_file_path, "-v"]
    return [_npx_command(), "jest", test_file_path, "--no-coverage", "--verbose"]


class TestRunner:
    """测试执行器"""
    __test__ = False

    def __init__(self, timeout_s: Optional[float] = None, python_bin: Optional[str] = None):
        self.timeout_s = timeout_s or settings.TEST_TIMEOUT_S
        self.python_bin = python_bin

    async def run(
        self,
        framework: TestFramework,
        test_file_path: str,
        working_directory: str,
    ) -> ExecutionResult:
        """
        执行测试文件

        退出码 0 -> passed，非 0 -> failed，进程无法启动或超时 -> error。
        执行失败本身不抛异常，统一以 error 状态返回。
        """
        cmd = build_command(framework, test_file_path, self.python_bin)
        return await self.run_command(cmd, working_directory, label=framework.value)

    async def run_command(self, cmd: list[str], working_directory: str, label: str = "") -> ExecutionResult:
        start_time = time.monotonic()
        logger.info(f"执行测试: {' '.join(cmd[:4])}{'...' if len(cmd) > 4 else ''}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=working_directory,
            )
        except OSError as e:
            elapsed_ms = int((time.monotonic() - start_time) * 1000)
            logger.warning(f"测试进程启动失败: {e}")
            return ExecutionResult(
                status=TestStatus.ERROR,
                duration_ms=elapsed_ms,
                stderr=f"Failed to execute {label or cmd[0]}: {e}",
            )

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning(f"测试执行超时 {self.timeout_s}s，终止进程")
            process.kill()
            await process.wait()
            return ExecutionResult(
                status=TestStatus.ERROR,
                duration_ms=int((time.monotonic() - start_time) * 1000),
                stderr=f"Test execution timed out after {self.timeout_s}s",
                killed_by_timeout=True,
            )

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        status = TestStatus.PASSED if process.returncode == 0 else TestStatus.FAILED
        return ExecutionResult(
            status=status,
            duration_ms=elapsed_ms,
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
        )
