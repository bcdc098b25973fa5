"""
测试生成测试

覆盖：模板生成器、LLM 客户端（MockTransport）、生成服务
"""
import json
import shutil

import httpx
import pytest

from specalign.core.errors import ExternalServiceError, InvalidInputError, NotFoundError
from specalign.models.enums import GenerationMode, TestFramework
from specalign.models.settings_schemas import AppSettings
from specalign.models.test_schemas import ProgressPhase
from specalign.services.generation.llm_generator import (
    LLMClient,
    build_context,
    build_prompt,
    extract_code_block,
    model_candidates,
)
from specalign.services.generation.template_generator import (
    find_relevant_symbols,
    generate_jest_test,
    generate_pytest_test,
    make_class_name,
    make_python_test_name,
    make_test_description,
)
from specalign.services.generation_service import GenerationService, parse_framework, parse_mode
from specalign.services.scanner import CodeSymbol, SymbolKind

AUTH_SYMBOL = CodeSymbol(name="authenticate", kind=SymbolKind.METHOD, file_path="src/auth.py")


class TestTemplateGenerator:
    """模板生成"""

    def test_test_description_rewrites_shall(self):
        assert make_test_description("The system shall authenticate users") == "authenticate users"

    def test_test_description_user_story(self):
        assert make_test_description("As a user, I want to reset my password") == "allow reset my password"

    def test_python_test_name(self):
        assert make_python_test_name("Users can log-in (quickly)") == "test_users_can_log_in__quickly"

    def test_python_test_name_fallback(self):
        assert make_python_test_name("!!!") == "test_requirement"

    def test_class_name_is_identifier(self):
        assert make_class_name("Spec > User Auth") == "SpecUserAuth"
        assert make_class_name(">") == "Requirement"

    def test_relevant_symbols(self):
        other = CodeSymbol(name="render", kind=SymbolKind.FUNCTION, file_path="ui.js")
        assert find_relevant_symbols("Users must authenticate first", [other, AUTH_SYMBOL]) == [AUTH_SYMBOL]

    def test_jest_output(self, make_requirement):
        code = generate_jest_test(make_requirement(), [AUTH_SYMBOL])
        assert code.startswith("// Requirement: The system shall authenticate users\n")
        assert "// import { authenticate } from './src/auth.py';" in code
        assert "describe('Spec > Requirements', () => {" in code
        assert "  it('should authenticate users', () => {" in code
        assert "// TODO: Verify authentication flow works correctly" in code
        assert code.endswith("});\n")

    def test_jest_escapes_quotes(self, make_requirement):
        code = generate_jest_test(make_requirement(description="Show the user's name"), [])
        assert "it('should show the user\\'s name'" in code

    def test_pytest_output(self, make_requirement):
        code = generate_pytest_test(make_requirement(), [AUTH_SYMBOL])
        assert "# from src.auth import authenticate" in code
        assert "class TestSpecRequirements:" in code
        assert "    def test_the_system_shall_authenticate_users(self):" in code
        assert '        """Test: The system shall authenticate users"""' in code
        compile(code, "generated_test.py", "exec")

    def test_pytest_output_with_quotes_compiles(self, make_requirement):
        code = generate_pytest_test(make_requirement(description='Say """hi""" and "bye"'), [])
        compile(code, "generated_test.py", "exec")


class TestLLMHelpers:

    def test_extract_code_block(self):
        text = "Here you go:\n```python\ndef test_a():\n    assert 1\n```\nDone"
        assert extract_code_block(text) == "def test_a():\n    assert 1"

    def test_extract_code_block_without_fence(self):
        assert extract_code_block("no code here") is None

    def test_model_candidates_deduplicated(self):
        assert model_candidates("a", ["a", "b", "c", "b"]) == ["a", "b", "c"]

    def test_context_without_symbols(self):
        assert build_context([]) == "No codebase context available."

    def test_prompt_mentions_requirement(self, make_requirement):
        prompt = build_prompt(make_requirement(), TestFramework.PYTEST, [AUTH_SYMBOL])
        assert "- Description: The system shall authenticate users" in prompt
        assert "pytest (Python testing framework)" in prompt
        assert "- method authenticate (in src/auth.py)" in prompt


class TestLLMClient:
    """LLM 客户端（模型降级）"""

    def test_empty_api_key_rejected(self):
        with pytest.raises(InvalidInputError):
            LLMClient("  ")

    @pytest.mark.asyncio
    async def test_falls_back_to_next_model(self, make_requirement):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            seen.append(body["model"])
            assert request.headers["x-api-key"] == "sk-test"
            if body["model"] == "primary":
                return httpx.Response(529, text="overloaded")
            return httpx.Response(200, json={
                "content": [{"type": "text", "text": "```python\ndef test_ok():\n    assert True\n```"}],
            })

        client = LLMClient(
            "sk-test",
            model="primary",
            fallback_models=["primary", "backup"],
            transport=httpx.MockTransport(handler),
        )
        code = await client.generate(make_requirement(), TestFramework.PYTEST, [])
        assert code == "def test_ok():\n    assert True"
        assert seen == ["primary", "backup"]

    @pytest.mark.asyncio
    async def test_all_models_failing(self, make_requirement):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        client = LLMClient(
            "sk-test",
            model="primary",
            fallback_models=["backup"],
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(ExternalServiceError, match="All models failed"):
            await client.generate(make_requirement(), TestFramework.JEST, [])


class _FakeLLMClient:
    def __init__(self, api_key):
        self.api_key = api_key

    async def generate(self, requirement, framework, symbols=()):
        return f"// llm test for {requirement.id}"


class _FlakyLLMClient:
    """第一条成功，之后全部失败"""

    def __init__(self, api_key):
        self.calls = 0

    async def generate(self, requirement, framework, symbols=()):
        self.calls += 1
        if self.calls > 1:
            raise ExternalServiceError("All models failed. Last error: HTTP 529")
        return "// ok"


class TestGenerationService:
    """生成服务"""

    def test_parse_framework_and_mode(self):
        assert parse_framework("pytest") == TestFramework.PYTEST
        assert parse_mode("llm") == GenerationMode.LLM
        with pytest.raises(InvalidInputError, match="Unsupported framework: mocha"):
            parse_framework("mocha")
        with pytest.raises(InvalidInputError, match="Unsupported mode: magic"):
            parse_mode("magic")

    @pytest.mark.asyncio
    async def test_template_generation(self, store, project, parsed_spec, settings_service, tracker):
        events = []
        service = GenerationService(store, settings_service=settings_service, tracker=tracker)
        req_ids = [r.id for r in parsed_spec.requirements]

        tests = await service.generate_tests(
            project.id, req_ids, "pytest", "template", batch_id="batch-1", on_progress=events.append,
        )

        assert [t.requirement_id for t in tests] == req_ids
        assert all(t.framework == TestFramework.PYTEST for t in tests)
        assert all(t.generation_mode == GenerationMode.TEMPLATE for t in tests)
        assert "# from src.auth import authenticate" in tests[0].code
        assert [e.completed for e in events] == [1, 2, 3, 3]
        assert events[-1].phase == ProgressPhase.COMPLETED
        assert tracker.latest("batch-1").phase == ProgressPhase.COMPLETED
        assert len(service.get_all_generated_tests(project.id)) == 3
        assert [t.id for t in service.get_generated_tests(req_ids[0])] == [tests[0].id]

    @pytest.mark.asyncio
    async def test_no_requirements_selected(self, store, project, settings_service, tracker):
        service = GenerationService(store, settings_service=settings_service, tracker=tracker)
        with pytest.raises(InvalidInputError, match="No requirements selected"):
            await service.generate_tests(project.id, [], "jest", "template")

    @pytest.mark.asyncio
    async def test_unknown_requirement(self, store, project, settings_service, tracker):
        service = GenerationService(store, settings_service=settings_service, tracker=tracker)
        with pytest.raises(NotFoundError):
            await service.generate_tests(project.id, ["missing"], "jest", "template")

    @pytest.mark.asyncio
    async def test_llm_mode_requires_api_key(self, store, project, parsed_spec, settings_service, tracker):
        service = GenerationService(store, settings_service=settings_service, tracker=tracker)
        with pytest.raises(InvalidInputError, match="API key is required"):
            await service.generate_tests(project.id, [parsed_spec.requirements[0].id], "jest", "llm")

    @pytest.mark.asyncio
    async def test_llm_mode_uses_client(self, store, project, parsed_spec, settings_service, tracker):
        settings_service.save_settings(AppSettings(api_key="sk-test"))
        service = GenerationService(
            store,
            settings_service=settings_service,
            tracker=tracker,
            llm_client_factory=_FakeLLMClient,
        )
        req_id = parsed_spec.requirements[0].id
        tests = await service.generate_tests(project.id, [req_id], "jest", "llm")
        assert tests[0].code == f"// llm test for {req_id}"
        assert tests[0].generation_mode == GenerationMode.LLM

    @pytest.mark.asyncio
    async def test_llm_failure_marks_batch_failed(self, store, project, parsed_spec, settings_service, tracker):
        settings_service.save_settings(AppSettings(api_key="sk-test"))
        events = []
        service = GenerationService(
            store,
            settings_service=settings_service,
            tracker=tracker,
            llm_client_factory=_FlakyLLMClient,
        )
        req_ids = [r.id for r in parsed_spec.requirements]

        with pytest.raises(ExternalServiceError, match="All models failed"):
            await service.generate_tests(
                project.id, req_ids, "jest", "llm", batch_id="llm-batch", on_progress=events.append,
            )

        latest = tracker.latest("llm-batch")
        assert latest.phase == ProgressPhase.FAILED
        assert latest.total == 3
        assert latest.completed == 1
        assert "HTTP 529" in latest.message
        assert [e.phase for e in events] == [ProgressPhase.GENERATING, ProgressPhase.FAILED]
        assert service.get_all_generated_tests(project.id) == []

    @pytest.mark.asyncio
    async def test_lookup_failure_marks_batch_failed(self, store, project, settings_service, tracker):
        service = GenerationService(store, settings_service=settings_service, tracker=tracker)
        with pytest.raises(NotFoundError):
            await service.generate_tests(project.id, ["missing"], "jest", "template", batch_id="missing-batch")

        latest = tracker.latest("missing-batch")
        assert latest.phase == ProgressPhase.FAILED
        assert latest.completed == 0

    @pytest.mark.asyncio
    async def test_missing_codebase_still_generates(self, store, project, parsed_spec, settings_service,
                                                    tracker, codebase):
        shutil.rmtree(codebase)

        service = GenerationService(store, settings_service=settings_service, tracker=tracker)
        tests = await service.generate_tests(project.id, [parsed_spec.requirements[0].id], "jest", "template")
        assert "import {" not in tests[0].code

    @pytest.mark.asyncio
    async def test_save_test_to_disk(self, store, project, parsed_spec, settings_service, tracker, tmp_path):
        service = GenerationService(store, settings_service=settings_service, tracker=tracker)
        tests = await service.generate_tests(
            project.id, [parsed_spec.requirements[0].id], "pytest", "template",
        )
        target = tmp_path / "out" / "nested" / "test_auth.py"

        assert service.save_test_to_disk(tests[0].id, str(target)) == str(target)
        assert target.read_text(encoding="utf-8") == tests[0].code
        assert service.get_generated_tests(tests[0].requirement_id)[0].file_path == str(target)
