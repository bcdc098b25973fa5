"""SpecAlign - Domain Enums

领域枚举（与存储层、API 层共用）
"""
from enum import Enum


class RequirementType(str, Enum):
    """需求类型"""
    FUNCTIONAL = "functional"
    NON_FUNCTIONAL = "non_functional"
    CONSTRAINT = "constraint"


class Priority(str, Enum):
    """需求优先级"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TestStatus(str, Enum):
    """测试执行结果状态"""
    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"


class MismatchType(str, Enum):
    """差异类型"""
    NO_TEST_GENERATED = "no_test_generated"
    NOT_IMPLEMENTED = "not_implemented"
    TEST_FAILING = "test_failing"
    PARTIAL_COVERAGE = "partial_coverage"


class TestFramework(str, Enum):
    """测试框架"""
    __test__ = False

    JEST = "jest"
    PYTEST = "pytest"


class GenerationMode(str, Enum):
    """测试生成模式"""
    TEMPLATE = "template"
    LLM = "llm"


class ExportFormat(str, Enum):
    """报告导出格式"""
    JSON = "json"
    CSV = "csv"
    HTML = "html"
