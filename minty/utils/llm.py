# minty/utils/llm.py
import logging
from typing import Dict, List, Optional, Tuple

import httpx

from minty.core.config import settings

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """The language model could not produce a completion."""


async def generate_completion(
    messages: List[Dict[str, str]],
    temperature: float = 0.3,
    max_tokens: int = 1024,
    title: str = "Minty Financial Assistant",
    client: Optional[httpx.AsyncClient] = None,
) -> Tuple[str, str]:
    """
    Run an OpenRouter chat completion, trying the primary model then the fallback model.

    Returns (content, model_used). Raises LLMError when no API key is configured
    or when both models fail.
    """
    if not settings.OPENROUTER_API_KEY:
        raise LLMError("OpenRouter API key not configured")

    headers = {
        "Authorization": f"Bearer {settings.OPENROUTER_API_KEY}",
        "Content-Type": "application/json",
        "HTTP-Referer": settings.FRONTEND_URL,
        "X-Title": title,
    }
    url = f"{settings.OPENROUTER_BASE_URL.rstrip('/')}/chat/completions"

    async def try_generate_response(http: httpx.AsyncClient, model: str) -> dict:
        payload = {
            "messages": messages,
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        try:
            response = await http.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            return {"success": False, "error": str(e)}

        if response.status_code == 200:
            try:
                response_data = response.json()
                return {"success": True, "response": response_data["choices"][0]["message"]["content"] or ""}
            except (ValueError, KeyError, IndexError, TypeError) as e:
                return {"success": False, "error": f"Malformed completion: {str(e)}"}
        return {"success": False, "error": response.text}

    async def run(http: httpx.AsyncClient) -> Tuple[str, str]:
        result = await try_generate_response(http, settings.LLM_PRIMARY_MODEL)
        if result["success"]:
            return result["response"], settings.LLM_PRIMARY_MODEL

        logger.warning(f"Primary model failed: {result['error']}. Trying fallback model...")
        result = await try_generate_response(http, settings.LLM_FALLBACK_MODEL)
        if result["success"]:
            return result["response"], settings.LLM_FALLBACK_MODEL

        raise LLMError(f"Both models failed. Last error: {result['error']}")

    if client is not None:
        return await run(client)
    async with httpx.AsyncClient(timeout=settings.LLM_TIMEOUT_SECONDS) as http:
        return await run(http)
