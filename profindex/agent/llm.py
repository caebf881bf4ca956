"""
Agent LLM: OpenAI (primary) or Hugging Face router (fallback).
When OPENAI_API_KEY is set, uses OpenAI chat completions; otherwise uses HF.
Tool calling (the agentic loop) requires OpenAI.
"""

import json
import logging
from typing import Any, Iterator

import httpx
from openai import OpenAI

from profindex.core.config import (
    ANSWER_MAX_TOKENS,
    HF_API_KEY,
    HF_CHAT_URL,
    HF_LLM_MODEL,
    LLM_API_TIMEOUT,
    OPENAI_API_KEY,
    OPENAI_LLM_MODEL,
)

logger = logging.getLogger(__name__)

MAX_CONTEXT_CHARS = 6000

Messages = list[dict[str, Any]]

ANSWER_SYSTEM_PROMPT = (
    "You answer questions about researchers at one institution using ONLY the profiles you are given.\n"
    "- Address the question directly, then support it with names, topics and citation figures from the profiles.\n"
    "- Do not invent researchers, topics or numbers that are not in the profiles.\n"
    "- If the profiles do not answer the question, say: \"I couldn't find that in the saved profiles.\""
)


def _openai_chat(messages: Messages, max_tokens: int) -> str:
    response = OpenAI(api_key=OPENAI_API_KEY).chat.completions.create(
        model=OPENAI_LLM_MODEL, messages=messages, max_tokens=max_tokens
    )
    if not response.choices:
        return ""
    text = (response.choices[0].message.content or "").strip()
    logger.info("[llm:openai] OUT len=%d", len(text))
    return text


def _hf_chat(messages: Messages, max_tokens: int) -> str:
    """HF router chat completion; every failure is logged and yields ""."""
    if not HF_API_KEY:
        logger.warning("[llm:hf] HF_API_KEY not set")
        return ""
    try:
        with httpx.Client(timeout=LLM_API_TIMEOUT) as client:
            response = client.post(
                HF_CHAT_URL,
                json={"model": HF_LLM_MODEL, "messages": messages, "max_tokens": max_tokens},
                headers={"Authorization": f"Bearer {HF_API_KEY}"},
            )
    except httpx.HTTPError as e:
        logger.warning("[llm:hf] request failed: %s", e)
        return ""
    if response.status_code != 200:
        logger.warning("[llm:hf] status=%s body=%s", response.status_code, response.text[:200])
        return ""
    choices = response.json().get("choices") or []
    first = choices[0] if choices and isinstance(choices[0], dict) else {}
    text = ((first.get("message") or {}).get("content") or "").strip()
    logger.info("[llm:hf] OUT len=%d", len(text))
    return text


def chat(messages: Messages, max_tokens: int = 256) -> str:
    """
    Plain chat completion. OpenAI when OPENAI_API_KEY is set; Hugging Face when
    it is not, or when OpenAI comes back empty.
    """
    logger.info("[llm:chat] IN  messages=%d max_tokens=%d", len(messages), max_tokens)
    if OPENAI_API_KEY:
        text = _openai_chat(messages, max_tokens)
        if text:
            return text
        logger.info("[llm:chat] empty OpenAI reply; trying Hugging Face")
    return _hf_chat(messages, max_tokens)


def generate_answer(query: str, sources: list[dict[str, Any]]) -> str:
    """Answer a question about researchers using only the retrieved profile chunks."""
    profiles = "\n\n---\n\n".join((s.get("text") or "") for s in sources)[:MAX_CONTEXT_CHARS]
    return chat(
        [
            {"role": "system", "content": ANSWER_SYSTEM_PROMPT},
            {"role": "user", "content": f"Question: {query}\n\nProfiles:\n{profiles}"},
        ],
        max_tokens=ANSWER_MAX_TOKENS,
    )


def _merge_tool_call_delta(pending: dict[int, dict[str, Any]], tc: Any) -> None:
    """Fold one streamed tool-call fragment into the call it belongs to (keyed by index)."""
    call = pending.setdefault(getattr(tc, "index", 0), {"id": "", "name": "", "arguments": ""})
    call["id"] = getattr(tc, "id", None) or call["id"]
    fn = getattr(tc, "function", None)
    if fn is None:
        return
    call["name"] = getattr(fn, "name", None) or call["name"]
    call["arguments"] += getattr(fn, "arguments", None) or ""


def _decode_tool_calls(pending: dict[int, dict[str, Any]]) -> list[dict[str, Any]]:
    """Ordered tool calls with JSON arguments parsed; malformed arguments become {}."""
    calls = []
    for idx in sorted(pending):
        raw = pending[idx]["arguments"]
        try:
            arguments = json.loads(raw) if raw else {}
        except json.JSONDecodeError:
            logger.warning("[llm:tool_calls] bad arguments for %s: %r", pending[idx]["name"], raw[:200])
            arguments = {}
        calls.append({"id": pending[idx]["id"], "name": pending[idx]["name"], "arguments": arguments})
    return calls


def chat_with_tools_stream(
    messages: list[dict[str, Any]],
    tools: list[dict[str, Any]],
    max_tokens: int = 512,
) -> Iterator[tuple]:
    """
    Stream one OpenAI chat turn with the professor tools attached.

    Yields ('content_delta', text) while the model writes, then either
    ('content_done',) or ('tool_calls', calls, content). Yields nothing without
    OPENAI_API_KEY; the agent loop reports that case itself.
    """
    if not OPENAI_API_KEY:
        logger.warning("[llm:chat_with_tools_stream] OPENAI_API_KEY not set; tool calling disabled")
        return
    stream = OpenAI(api_key=OPENAI_API_KEY).chat.completions.create(
        model=OPENAI_LLM_MODEL,
        messages=messages,
        tools=tools,
        max_tokens=max_tokens,
        stream=True,
    )
    text: list[str] = []
    pending: dict[int, dict[str, Any]] = {}
    for chunk in stream:
        if not chunk.choices:
            continue
        delta = chunk.choices[0].delta
        piece = getattr(delta, "content", None)
        if piece:
            text.append(piece)
            yield ("content_delta", piece)
        for tc in getattr(delta, "tool_calls", None) or []:
            _merge_tool_call_delta(pending, tc)

    content = "".join(text)
    if not pending:
        logger.info("[llm:chat_with_tools_stream] OUT answer_len=%d", len(content))
        yield ("content_done",)
        return
    calls = _decode_tool_calls(pending)
    logger.info("[llm:chat_with_tools_stream] OUT tool_calls=%s", [c["name"] for c in calls])
    yield ("tool_calls", calls, content)
