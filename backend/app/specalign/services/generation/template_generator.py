"""SpecAlign - Template Test Generator

不依赖 LLM 的测试骨架生成（jest / pytest）。
"""
from __future__ import annotations

import re
from typing import Protocol, Sequence

from specalign.services.scanner.base import CodeSymbol

MAX_RELEVANT_SYMBOLS = 5
MIN_MATCH_WORD_LEN = 4
MAX_TEST_NAME_WORDS = 8

_NON_IDENT = re.compile(r"\W")

# (关键字片段, 断言提示)，按顺序匹配
_ASSERTION_HINTS = (
    (("authenti", "login"), "Verify authentication flow works correctly"),
    (("creat", "add"), "Verify resource is created successfully"),
    (("delet", "remov"), "Verify resource is deleted successfully"),
    (("updat", "edit", "modif"), "Verify resource is updated correctly"),
    (("list", "display", "show", "view"), "Verify data is displayed correctly"),
    (("validat", "check"), "Verify validation rules are enforced"),
)


class RequirementLike(Protocol):
    description: str
    section: str
    req_type: object
    priority: object


def enum_value(field) -> str:
    return getattr(field, "value", str(field))


def find_relevant_symbols(description: str, symbols: Sequence[CodeSymbol]) -> list[CodeSymbol]:
    """符号名与描述中长度 > 3 的单词互相包含即视为相关，最多 5 个"""
    words = [w for w in description.lower().split() if len(w) >= MIN_MATCH_WORD_LEN]
    relevant = []
    for sym in symbols:
        name = sym.name.lower()
        if any(word in name or name in word for word in words):
            relevant.append(sym)
            if len(relevant) >= MAX_RELEVANT_SYMBOLS:
                break
    return relevant


def make_test_description(description: str) -> str:
    """把需求描述改写成 it('should ...') 的描述"""
    lower = description.lower()
    for prefix in ("the system shall ", "the system must "):
        if lower.startswith(prefix):
            return lower[len(prefix):]
    if lower.startswith("as a "):
        for marker in ("i want to ", "i should be able to "):
            idx = lower.find(marker)
            if idx >= 0:
                return f"allow {lower[idx + len(marker):]}"
    return lower


def make_python_test_name(description: str) -> str:
    words = description.split()[:MAX_TEST_NAME_WORDS]
    name = _NON_IDENT.sub("_", "_".join(words).lower()).strip("_")
    return f"test_{name}" if name else "test_requirement"


def make_class_name(section: str) -> str:
    """section 转 PascalCase（去掉非字母数字字符）"""
    parts = []
    for word in section.split():
        cleaned = "".join(c for c in word if c.isalnum())
        if cleaned:
            parts.append(cleaned[0].upper() + cleaned[1:])
    name = "".join(parts)
    return name or "Requirement"


def escape_js_string(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def assertion_hint(description: str) -> str | None:
    lower = description.lower()
    for fragments, hint in _ASSERTION_HINTS:
        if any(f in lower for f in fragments):
            return hint
    return None


def _header(requirement: RequirementLike, comment: str) -> list[str]:
    return [
        f"{comment} Requirement: {requirement.description}",
        f"{comment} Section: {requirement.section}",
        f"{comment} Type: {enum_value(requirement.req_type)} | Priority: {enum_value(requirement.priority)}",
        "",
    ]


def generate_jest_test(requirement: RequirementLike, symbols: Sequence[CodeSymbol]) -> str:
    desc = requirement.description
    section = requirement.section
    lines = _header(requirement, "//")

    relevant = find_relevant_symbols(desc, symbols)
    if relevant:
        lines.extend(f"// import {{ {s.name} }} from './{s.file_path}';" for s in relevant)
        lines.append("")

    lines.append(f"describe('{escape_js_string(section)}', () => {{")
    lines.append(f"  it('should {escape_js_string(make_test_description(desc))}', () => {{")
    hint = assertion_hint(desc)
    if hint:
        lines.append(f"    // TODO: {hint}")
    lines.extend([
        "    // Arrange",
        "    ",
        "    // Act",
        "    ",
        "    // Assert",
        "    expect(true).toBe(true); // TODO: Replace with actual assertion",
        "  });",
        "});",
    ])
    return "\n".join(lines) + "\n"


def generate_pytest_test(requirement: RequirementLike, symbols: Sequence[CodeSymbol]) -> str:
    desc = requirement.description
    lines = _header(requirement, "#")

    relevant = find_relevant_symbols(desc, symbols)
    if relevant:
        for s in relevant:
            module = s.file_path.replace("/", ".").replace(".py", "")
            lines.append(f"# from {module} import {s.name}")
        lines.append("")

    docstring = desc.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if docstring.endswith('"'):
        docstring += " "
    lines.extend([
        f"class Test{make_class_name(requirement.section)}:",
        f"    def {make_python_test_name(desc)}(self):",
        f'        """Test: {docstring}"""',
        "        # Arrange",
        "        ",
        "        # Act",
        "        ",
        "        # Assert",
        "        assert True  # TODO: Replace with actual assertion",
    ])
    return "\n".join(lines) + "\n"
