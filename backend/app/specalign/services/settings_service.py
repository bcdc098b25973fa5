"""SpecAlign - User Settings Service

用户设置读写（<data_dir>/settings.json）
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from specalign.core.config import settings as runtime_settings
from specalign.core.errors import InvalidInputError, StorageIOError
from specalign.models.enums import GenerationMode, TestFramework
from specalign.models.settings_schemas import AppSettings

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "settings.json"

_FRAMEWORKS = {f.value for f in TestFramework}
_MODES = {m.value for m in GenerationMode}


class SettingsService:
    """用户设置服务"""

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir else runtime_settings.DATA_DIR

    @property
    def path(self) -> Path:
        return self.data_dir / SETTINGS_FILENAME

    def load_settings(self) -> AppSettings:
        """读取设置，文件不存在时返回默认值"""
        if not self.path.exists():
            return AppSettings()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageIOError(f"Cannot read settings: {e}") from e
        try:
            return AppSettings.model_validate_json(raw)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid settings file: {e}") from e

    def save_settings(self, app_settings: AppSettings) -> AppSettings:
        """校验后写入设置（格式化 JSON）"""
        if app_settings.default_framework not in _FRAMEWORKS:
            raise InvalidInputError(
                f"Invalid framework '{app_settings.default_framework}'. Must be 'jest' or 'pytest'"
            )
        if app_settings.default_mode not in _MODES:
            raise InvalidInputError(
                f"Invalid mode '{app_settings.default_mode}'. Must be 'template' or 'llm'"
            )
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(app_settings.model_dump(), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            raise StorageIOError(f"Cannot write settings: {e}") from e
        logger.info(f"用户设置已保存: {self.path}")
        return app_settings


def get_settings_service() -> SettingsService:
    """获取设置服务（依赖注入）"""
    return SettingsService()
