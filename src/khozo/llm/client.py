"""
Language-model client for the Anthropic Messages API with the server-side
web-search tool.
"""

from __future__ import annotations

from typing import Any, Dict, List

import structlog
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from khozo.config.config import LLMConfig
from khozo.crawler.http_client import HttpClient
from khozo.exceptions import LanguageModelError
from khozo.protocols import CompletionRequest, CompletionResponse, CredentialStore

logger = structlog.get_logger(__name__)

WEB_SEARCH_TOOL_TYPE = "web_search_20250305"
_SEARCH_BLOCK_TYPES = frozenset({"server_tool_use", "web_search_tool_result", "tool_use"})
# Provider-side overload; HttpClient does not retry these.
TRANSIENT_STATUSES = frozenset({500, 529})

FORCE_SEARCH_INSTRUCTION = (
    "You MUST call the web_search tool before answering. Do not answer from memory; "
    "base every statement on what the search returns."
)


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, LanguageModelError) and error.status in TRANSIENT_STATUSES


class AnthropicClient:
    """Implements ``LanguageModel`` over the shared ``HttpClient``."""

    def __init__(self, http_client: HttpClient, config: LLMConfig, credentials: CredentialStore) -> None:
        self.http_client = http_client
        self.config = config
        self.credentials = credentials
        self.logger = logger.bind(component="AnthropicClient", model=config.model)

    def build_payload(self, request: CompletionRequest) -> Dict[str, Any]:
        system_prompt = request.system_prompt
        if request.enable_web_search and request.force_web_search:
            system_prompt = f"{system_prompt}\n\n{FORCE_SEARCH_INSTRUCTION}"

        payload: Dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "system": system_prompt,
            "messages": [{"role": "user", "content": request.user_prompt}],
        }
        if request.enable_web_search:
            payload["tools"] = [
                {
                    "type": WEB_SEARCH_TOOL_TYPE,
                    "name": "web_search",
                    "max_uses": self.config.max_web_search_uses,
                }
            ]
            if request.force_web_search:
                payload["tool_choice"] = {"type": "any"}
        return payload

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        api_key = self.credentials.get("anthropic_api_key")
        if not api_key:
            raise LanguageModelError("anthropic_api_key is not configured")

        response = await self.http_client.post_json(
            self.config.api_url,
            self.build_payload(request),
            headers={
                "x-api-key": api_key,
                "anthropic-version": self.config.api_version,
                "content-type": "application/json",
            },
            timeout=self.config.timeout,
        )
        if not response.ok:
            detail = response.error or response.text()[:300]
            self.logger.error("Model call failed", status=response.status, detail=detail)
            raise LanguageModelError(f"model API error {response.status}: {detail}", status=response.status)

        try:
            data = response.json()
        except ValueError as e:
            raise LanguageModelError(f"model API returned invalid JSON: {e}") from e

        return parse_messages_response(data)


def parse_messages_response(data: Dict[str, Any]) -> CompletionResponse:
    """Concatenate text blocks and detect whether the search tool ran."""
    blocks: List[Dict[str, Any]] = data.get("content") or []
    text = "".join(block.get("text", "") for block in blocks if block.get("type") == "text")

    usage = data.get("usage") or {}
    search_requests = (usage.get("server_tool_use") or {}).get("web_search_requests") or 0
    web_search_used = search_requests > 0 or any(block.get("type") in _SEARCH_BLOCK_TYPES for block in blocks)

    return CompletionResponse(
        content=text,
        tokens_used={
            "input": int(usage.get("input_tokens") or 0),
            "output": int(usage.get("output_tokens") or 0),
        },
        web_search_used=web_search_used,
    )
