"""SpecAlign - LLM Test Generator

通过 Anthropic Messages API 生成测试代码。
主模型失败时按顺序尝试备用模型，不做其他重试。
"""
from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

import httpx

from specalign.core.config import settings
from specalign.core.errors import ExternalServiceError, InvalidInputError
from specalign.models.enums import TestFramework
from specalign.services.generation.template_generator import RequirementLike, enum_value
from specalign.services.scanner.base import CodeSymbol

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
MAX_CONTEXT_SYMBOLS = 30

# 代码块起始标记，按顺序查找
_CODE_FENCES = ("```typescript", "```javascript", "```python", "```js", "```ts", "```py", "```")

_FRAMEWORK_INFO = {
    TestFramework.JEST: (
        "Jest (JavaScript/TypeScript testing framework)",
        """
Example Jest test structure:
```typescript
// REQ-001: User authentication
describe('User Authentication', () => {
  it('should authenticate user with valid credentials', () => {
    // Arrange
    const mockUser = { email: 'test@example.com', password: 'validPass123' };
    const authService = new AuthService();

    // Act
    const result = authService.login(mockUser.email, mockUser.password);

    // Assert
    expect(result.success).toBe(true);
    expect(result.user.email).toBe(mockUser.email);
  });

  it('should reject invalid credentials', () => {
    const authService = new AuthService();
    const result = authService.login('test@example.com', 'wrongPass');
    expect(result.success).toBe(false);
  });
});
```""",
    ),
    TestFramework.PYTEST: (
        "pytest (Python testing framework)",
        '''
Example pytest test structure:
```python
# REQ-001: User authentication

class TestUserAuthentication:
    def test_authenticate_with_valid_credentials(self):
        """Should authenticate user with valid email and password."""
        # Arrange
        auth_service = AuthService()

        # Act
        result = auth_service.login("test@example.com", "validPass123")

        # Assert
        assert result.success is True
        assert result.user is not None

    def test_reject_invalid_credentials(self):
        """Should reject authentication with wrong password."""
        auth_service = AuthService()
        result = auth_service.login("test@example.com", "wrongPass")
        assert result.success is False
```''',
    ),
}

_PROMPT_TEMPLATE = """Generate a test for the following requirement. Output ONLY the test code in a markdown code block, no explanations before or after.

**Requirement Details:**
- Description: {description}
- Section: {section}
- Type: {req_type}
- Priority: {priority}

**Test Framework:** {framework_info}

**Codebase Context:**
{context}

{example}

**Requirements for generated test:**
1. Clear arrange/act/assert structure (AAA pattern)
2. Meaningful assertions that actually test the requirement (not placeholders like `expect(true).toBe(true)`)
3. Traceability comment at top linking to requirement ID or description
4. Cover main happy path + at least one edge case or error scenario
5. Use realistic mock data and object names matching the domain
6. Include descriptive test names that explain what is being tested
7. Keep tests focused and readable (each test should verify one behavior)

Output the complete, ready-to-run test code:"""


def build_context(symbols: Sequence[CodeSymbol]) -> str:
    if not symbols:
        return "No codebase context available."
    lines = ["Codebase symbols:"]
    for sym in symbols[:MAX_CONTEXT_SYMBOLS]:
        lines.append(f"- {sym.kind.value} {sym.name} (in {sym.file_path})")
    return "\n".join(lines) + "\n"


def build_prompt(requirement: RequirementLike, framework: TestFramework, symbols: Sequence[CodeSymbol]) -> str:
    framework_info, example = _FRAMEWORK_INFO[framework]
    return _PROMPT_TEMPLATE.format(
        description=requirement.description,
        section=requirement.section,
        req_type=enum_value(requirement.req_type),
        priority=enum_value(requirement.priority),
        framework_info=framework_info,
        context=build_context(symbols),
        example=example,
    )


def extract_code_block(text: str) -> Optional[str]:
    """取第一个代码块的内容；没有完整代码块时返回 None"""
    for fence in _CODE_FENCES:
        start = text.find(fence)
        if start < 0:
            continue
        newline = text.find("\n", start + len(fence))
        if newline < 0:
            return None
        end = text.find("```", newline + 1)
        if end < 0:
            return None
        return text[newline + 1:end].strip()
    return None


def model_candidates(primary: str, fallbacks: Sequence[str]) -> list[str]:
    """主模型在前，其后依次为备用模型（去重）"""
    models = [primary]
    for model in fallbacks:
        if model not in models:
            models.append(model)
    return models


class LLMClient:
    """Anthropic Messages API 客户端"""

    def __init__(
        self,
        api_key: str,
        *,
        model: Optional[str] = None,
        fallback_models: Optional[Sequence[str]] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_tokens: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key or not api_key.strip():
            raise InvalidInputError("API key is required for LLM generation")
        self.api_key = api_key
        self.model = model or settings.LLM_MODEL
        self.fallback_models = list(
            settings.LLM_FALLBACK_MODELS if fallback_models is None else fallback_models
        )
        self.api_url = api_url or settings.LLM_API_URL
        self.timeout = timeout or settings.LLM_TIMEOUT_S
        self.max_tokens = max_tokens or settings.LLM_MAX_TOKENS
        self._transport = transport

    async def generate(
        self,
        requirement: RequirementLike,
        framework: TestFramework,
        symbols: Sequence[CodeSymbol] = (),
    ) -> str:
        """
        生成测试代码

        Raises:
            ExternalServiceError: 所有模型均调用失败（携带最后一次错误）
        """
        prompt = build_prompt(requirement, framework, symbols)
        models = model_candidates(self.model, self.fallback_models)
        last_error: Optional[Exception] = None

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for index, model in enumerate(models):
                try:
                    code = await self._call(client, model, prompt)
                except (httpx.HTTPError, ExternalServiceError, ValueError) as e:
                    logger.warning(f"模型 {model} 调用失败 ({index + 1}/{len(models)}): {e}")
                    last_error = e
                    continue
                if index > 0:
                    logger.warning(f"主模型失败，已使用备用模型: {model}")
                return code

        raise ExternalServiceError(f"All models failed: {last_error}")

    async def _call(self, client: httpx.AsyncClient, model: str, prompt: str) -> str:
        start = time.monotonic()
        response = await client.post(
            self.api_url,
            json={
                "model": model,
                "max_tokens": self.max_tokens,
                "messages": [{"role": "user", "content": prompt}],
            },
            headers={
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
        )
        logger.debug(f"LLM 调用 {model} 耗时 {time.monotonic() - start:.2f}s")

        if response.status_code >= 400:
            raise ExternalServiceError(f"Claude API error ({response.status_code}): {response.text}")

        payload = response.json()
        text = "\n".join(
            block["text"] for block in payload.get("content", []) if block.get("text")
        )
        return extract_code_block(text) or text
