"""
Agentic loop: OpenAI tool calling over the professor/institution tools.

The model decides which tools to call; results go back as tool messages until
it writes a final answer or the round limit is hit.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Iterator

from profindex.agent.llm import chat_with_tools_stream
from profindex.agent.tools import AGENT_TOOLS, execute_tool
from profindex.core.config import AGENT_MAX_TOKENS, MAX_AGENTIC_ROUNDS

logger = logging.getLogger(__name__)


def system_prompt() -> str:
    today = datetime.now(timezone.utc).strftime("%a, %b %d, %Y")
    return (
        "You are a friendly assistant that helps students and researchers explore universities, "
        "institutions, and professors.\n\n"
        "Tools:\n"
        "- get_institutions_by_place lists institutions in a country, city or region; "
        "search_institutions finds institutions by name.\n"
        "- get_professors_by_institution fetches professors for one institution and saves their profiles; "
        "search_authors finds authors by name when the institution is not known.\n"
        "- When the user wants professors at an institution working on some topic, first resolve the "
        "institution, call get_professors_by_institution, then call search_professors with the same "
        "institution ID (OpenAlex ID such as I123...) so results stay scoped to that institution.\n"
        "- search_professors takes ONE focused natural language query. Never batch several searches "
        "into one query with OR.\n"
        "- saved_professors lists what is already saved; store_status checks whether a store exists.\n\n"
        "Answer accurately and in detail using markdown (tables welcome). Do not invent professors, "
        "topics or numbers that the tools did not return.\n\n"
        f"Today's date: {today}"
    )


def _initial_messages(question: str, history: list[dict[str, Any]]) -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = [{"role": "system", "content": system_prompt()}]
    for m in history:
        role = (m.get("role") or "user").strip().lower()
        content = (m.get("content") or "").strip()
        if role in ("user", "assistant") and content:
            messages.append({"role": role, "content": content})
    messages.append({"role": "user", "content": question})
    return messages


def run_agent_agentic_stream(question: str, history: list | None = None) -> Iterator[dict[str, Any]]:
    """
    Run the agent in tool-calling mode and yield SSE-friendly events:
    {"event": "answer_delta", "content": str}, {"event": "tool", "name": str},
    {"event": "done", "answer": str, "tools_used": list} or {"event": "error", "message": str}.
    """
    if not question or not str(question).strip():
        yield {"event": "error", "message": "question is required"}
        return
    q = str(question).strip()
    hist = history if history is not None else []
    logger.info("[agent:run] START question=%r history_len=%d", q, len(hist))

    messages = _initial_messages(q, hist)
    tools_used: list[str] = []
    try:
        for _ in range(MAX_AGENTIC_ROUNDS):
            streamed: list[str] = []
            tool_calls: list[dict] | None = None
            content = ""
            for item in chat_with_tools_stream(messages, AGENT_TOOLS, max_tokens=AGENT_MAX_TOKENS):
                if item[0] == "content_delta":
                    streamed.append(item[1])
                    yield {"event": "answer_delta", "content": item[1]}
                elif item[0] == "content_done":
                    answer = "".join(streamed).strip()
                    logger.info("[agent:run] END tools_used=%s answer_len=%d", tools_used, len(answer))
                    yield {"event": "done", "answer": answer, "tools_used": list(tools_used)}
                    return
                elif item[0] == "tool_calls":
                    tool_calls, content = item[1], (item[2] or "").strip()
                    break
            if not tool_calls:
                break
            messages.append({
                "role": "assistant",
                "content": content,
                "tool_calls": [
                    {"id": tc["id"], "type": "function", "function": {"name": tc["name"], "arguments": json.dumps(tc.get("arguments") or {})}}
                    for tc in tool_calls
                ],
            })
            for tc in tool_calls:
                name = tc.get("name", "")
                yield {"event": "tool", "name": name}
                result = execute_tool(name, tc.get("arguments") or {})
                tools_used.append(name)
                messages.append({"role": "tool", "tool_call_id": tc.get("id", ""), "content": result})
        answer = "I couldn't complete the request (tool calling requires OPENAI_API_KEY)."
        if tools_used:
            answer = "I couldn't finish within the tool-call limit. Please narrow the question."
        yield {"event": "done", "answer": answer, "tools_used": list(tools_used)}
    except Exception as e:
        logger.exception("[agent:run] Agent stream failed")
        yield {"event": "error", "message": str(e)}
