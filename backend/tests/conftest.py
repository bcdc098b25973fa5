"""
SpecAlign 测试配置

每个测试使用独立的文件数据库（内存数据库有连接隔离问题），
并覆盖 Store / 用户设置依赖。
"""
import pytest
from fastapi.testclient import TestClient

from specalign.database.config import Base, Store, get_store, make_engine
from specalign.database import models  # noqa: F401 - 注册模型
from specalign.main import app
from specalign.models.enums import Priority, RequirementType
from specalign.services.progress import ProgressTracker
from specalign.services.project_service import ProjectService
from specalign.services.settings_service import SettingsService, get_settings_service
from specalign.services.spec_service import SpecService

SAMPLE_SPEC = """# Shop

## Requirements
- The system shall authenticate users
- REQ-002: Users can add items to the cart

## Non-Functional Requirements
- Checkout must respond within 200ms
"""


@pytest.fixture
def store(tmp_path):
    """每个测试前建表，测试后清理"""
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    test_store = Store(engine)
    test_store.create_all()
    yield test_store
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def settings_service(tmp_path):
    return SettingsService(tmp_path / "data")


@pytest.fixture
def tracker():
    return ProgressTracker()


@pytest.fixture
def codebase(tmp_path):
    """一个最小的代码库目录"""
    root = tmp_path / "codebase"
    (root / "src").mkdir(parents=True)
    (root / "src" / "auth.py").write_text(
        "class AuthService:\n    def authenticate(self, user):\n        return True\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture
def project(store, codebase):
    return ProjectService(store).create_project("Shop", str(codebase))


@pytest.fixture
def parsed_spec(store, project):
    return SpecService(store).upload_spec(project.id, "shop.md", SAMPLE_SPEC)


@pytest.fixture
def client(store, settings_service):
    """提供测试客户端（不触发 lifespan，避免初始化默认数据库）"""
    old_overrides = app.dependency_overrides.copy()
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_settings_service] = lambda: settings_service
    yield TestClient(app)
    app.dependency_overrides = old_overrides


@pytest.fixture
def make_requirement():
    """构造一个满足 RequirementLike 的需求对象"""
    from specalign.models.spec_schemas import RequirementResponse

    def _make(description="The system shall authenticate users", section="Spec > Requirements"):
        return RequirementResponse(
            id="req-1",
            spec_id="spec-1",
            section=section,
            description=description,
            req_type=RequirementType.FUNCTIONAL,
            priority=Priority.MEDIUM,
        )

    return _make
