"""SpecAlign - Language Symbol Extractors

各语言的行级启发式符号提取器
"""
from __future__ import annotations

from specalign.services.scanner.base import (
    CodeSymbol,
    SymbolExtractor,
    SymbolKind,
    take_identifier,
    extract_after_keyword,
    is_control_statement,
    method_name_before_paren,
)


class JavaScriptExtractor(SymbolExtractor):
    """JS / TS：function、class、const 箭头函数"""

    language = "javascript"
    extensions = ("ts", "tsx", "js", "jsx")

    def extract(self, content: str, file_path: str) -> list[CodeSymbol]:
        symbols = []
        for line in content.splitlines():
            trimmed = line.strip()
            name = extract_after_keyword(trimmed, "function ")
            if name:
                symbols.append(self._symbol(name, SymbolKind.FUNCTION, file_path))
            name = extract_after_keyword(trimmed, "class ")
            if name:
                symbols.append(self._symbol(name, SymbolKind.CLASS, file_path))

            # const foo = (...) => / const foo = function
            if trimmed.startswith(("export const ", "const ")) and (
                "=>" in trimmed or "= function" in trimmed
            ):
                rest = trimmed[len("export const "):] if trimmed.startswith("export ") else trimmed[len("const "):]
                name = take_identifier(rest)
                if name and len(name) < len(rest):
                    symbols.append(self._symbol(name, SymbolKind.FUNCTION, file_path))
        return symbols


class PythonExtractor(SymbolExtractor):
    """Python：缩进的 def 视为方法"""

    language = "python"
    extensions = ("py",)

    def extract(self, content: str, file_path: str) -> list[CodeSymbol]:
        symbols = []
        for line in content.splitlines():
            trimmed = line.strip()
            name = extract_after_keyword(trimmed, "def ")
            if name:
                indented = line.startswith("    ") or line.startswith("\t")
                kind = SymbolKind.METHOD if indented else SymbolKind.FUNCTION
                symbols.append(self._symbol(name, kind, file_path))
            name = extract_after_keyword(trimmed, "class ")
            if name:
                symbols.append(self._symbol(name, SymbolKind.CLASS, file_path))
        return symbols


class RustExtractor(SymbolExtractor):
    language = "rust"
    extensions = ("rs",)

    def extract(self, content: str, file_path: str) -> list[CodeSymbol]:
        symbols = []
        for line in content.splitlines():
            trimmed = line.strip()
            name = extract_after_keyword(trimmed, "fn ")
            if name:
                symbols.append(self._symbol(name, SymbolKind.FUNCTION, file_path))
            for keyword in ("struct ", "impl "):
                name = extract_after_keyword(trimmed, keyword)
                if name:
                    symbols.append(self._symbol(name, SymbolKind.CLASS, file_path))
        return symbols


class GoExtractor(SymbolExtractor):
    """Go：func 与 type X struct / interface"""

    language = "go"
    extensions = ("go",)

    def extract(self, content: str, file_path: str) -> list[CodeSymbol]:
        symbols = []
        for line in content.splitlines():
            trimmed = line.strip()
            name = extract_after_keyword(trimmed, "func ")
            if name:
                symbols.append(self._symbol(name, SymbolKind.FUNCTION, file_path))
            name = extract_after_keyword(trimmed, "type ")
            if name and (" struct" in trimmed or " interface" in trimmed):
                symbols.append(self._symbol(name, SymbolKind.CLASS, file_path))
        return symbols


class JavaExtractor(SymbolExtractor):
    language = "java"
    extensions = ("java",)

    @staticmethod
    def looks_like_method(line: str) -> bool:
        return (
            "(" in line
            and ")" in line
            and (line.endswith(("{", "}", ";")) or " throws " in line)
            and " class " not in line
            and not is_control_statement(line)
        )

    def extract(self, content: str, file_path: str) -> list[CodeSymbol]:
        symbols = []
        for line in content.splitlines():
            trimmed = line.strip()
            for keyword in ("class ", "interface "):
                name = extract_after_keyword(trimmed, keyword)
                if name:
                    symbols.append(self._symbol(name, SymbolKind.CLASS, file_path))
            if self.looks_like_method(trimmed):
                name = method_name_before_paren(trimmed)
                if name:
                    symbols.append(self._symbol(name, SymbolKind.METHOD, file_path))
        return symbols


class RubyExtractor(SymbolExtractor):
    """Ruby：def self.build 记为 build"""

    language = "ruby"
    extensions = ("rb",)

    def extract(self, content: str, file_path: str) -> list[CodeSymbol]:
        symbols = []
        for line in content.splitlines():
            trimmed = line.strip()
            name = extract_after_keyword(trimmed, "class ")
            if name:
                symbols.append(self._symbol(name, SymbolKind.CLASS, file_path))
            if trimmed.startswith("def "):
                parts = trimmed[len("def "):].split()
                head = parts[0].split("(")[0] if parts else ""
                name = head.rsplit(".", 1)[-1]
                if name:
                    symbols.append(self._symbol(name, SymbolKind.METHOD, file_path))
        return symbols


class CSharpExtractor(SymbolExtractor):
    language = "csharp"
    extensions = ("cs",)

    @staticmethod
    def looks_like_method(line: str) -> bool:
        return (
            "(" in line
            and ")" in line
            and (line.endswith(("{", "}", "=>")) or " => " in line)
            and " class " not in line
            and not is_control_statement(line)
        )

    def extract(self, content: str, file_path: str) -> list[CodeSymbol]:
        symbols = []
        for line in content.splitlines():
            trimmed = line.strip()
            for keyword in ("class ", "interface "):
                name = extract_after_keyword(trimmed, keyword)
                if name:
                    symbols.append(self._symbol(name, SymbolKind.CLASS, file_path))
            if self.looks_like_method(trimmed):
                name = method_name_before_paren(trimmed)
                if name:
                    symbols.append(self._symbol(name, SymbolKind.METHOD, file_path))
        return symbols


BUILTIN_EXTRACTORS: tuple[type[SymbolExtractor], ...] = (
    JavaScriptExtractor,
    PythonExtractor,
    RustExtractor,
    GoExtractor,
    JavaExtractor,
    RubyExtractor,
    CSharpExtractor,
)
