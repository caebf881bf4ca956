# Run from project root: streamlit run profindex/ui.py
# UI talks to backend API (POST /institutions/ingest/stream for SSE progress, POST /search,
# GET /institutions/{id}/professors, POST /query/stream). Chat history is stored on server by session_id.

import json
import os
import uuid

import requests
import streamlit as st

API_BASE = os.environ.get("API_BASE", "http://localhost:8000")


def _sse_events(response: requests.Response):
    """Parse `event:`/`data:` pairs from a streaming response."""
    event_type = None
    for line in response.iter_lines(decode_unicode=True):
        if not line:
            continue
        if line.startswith("event:"):
            event_type = line[len("event:"):].strip()
        elif line.startswith("data:") and event_type:
            try:
                yield event_type, json.loads(line[len("data:"):].strip())
            except json.JSONDecodeError:
                pass
            event_type = None


st.title("Professor Explorer")

if "session_id" not in st.session_state:
    st.session_state.session_id = str(uuid.uuid4())
if "institution_id" not in st.session_state:
    st.session_state.institution_id = ""

# --- Fetch professors for an institution ---
st.subheader("Fetch professors")
institution_query = st.text_input("Institution name or OpenAlex ID", placeholder="Stanford University or I97018004")
if st.button("Fetch and save", key="ingest_btn") and institution_query.strip():
    status_box = st.empty()
    try:
        with requests.post(
            f"{API_BASE}/institutions/ingest/stream",
            json={"institution_query": institution_query.strip()},
            stream=True,
            timeout=600,
        ) as r:
            if not r.ok:
                st.error(f"Request failed: {r.status_code} — {r.text[:200]}")
            else:
                for event_type, data in _sse_events(r):
                    if event_type == "progress":
                        status_box.info(data.get("message", ""))
                    elif event_type == "result":
                        if data.get("success"):
                            st.session_state.institution_id = data.get("institution_key", "")
                            msg = f"Saved {data.get('saved_count', 0)} professors ({data.get('pages_fetched', 0)} pages)."
                            if not data.get("indexed", False):
                                msg += f" Indexing failed: {data.get('index_error', 'unknown error')}"
                                st.warning(msg)
                            else:
                                st.success(msg)
                        else:
                            st.error(data.get("error", "Unknown error"))
    except requests.RequestException as e:
        st.error(f"Request failed: {e}")

institution_id = st.text_input("Institution ID for search", value=st.session_state.institution_id)

# --- Saved professors ---
if institution_id.strip() and st.button("Show saved professors", key="saved_btn"):
    try:
        r = requests.get(f"{API_BASE}/institutions/{institution_id.strip()}/professors", timeout=30)
        data = r.json() if r.ok else {}
        if data.get("success"):
            st.caption(f"{data.get('count', 0)} professors saved in {data.get('store', '')}")
            st.table([
                {
                    "Name": p["name"],
                    "2yr mean citedness": p.get("two_year_mean_citedness"),
                    "Topics": ", ".join(p.get("topics") or []),
                }
                for p in data.get("professors", [])
            ])
        else:
            st.error(data.get("error") or f"Request failed: {r.status_code}")
    except requests.RequestException as e:
        st.error(f"Request failed: {e}")

# --- Search saved profiles ---
st.subheader("Search saved profiles")
search_query = st.text_input("What are you looking for?", placeholder="machine learning for healthcare")
generate = st.checkbox("Generate an answer", value=False)
if st.button("Search", key="search_btn") and search_query.strip() and institution_id.strip():
    try:
        r = requests.post(
            f"{API_BASE}/search",
            json={"query": search_query.strip(), "institution": institution_id.strip(), "generate_answer": generate},
            timeout=120,
        )
        data = r.json() if r.ok else {}
        if data.get("success"):
            results = data.get("results") or {}
            if generate and results.get("answer"):
                st.markdown(results["answer"])
            for hit in results.get("data") or results.get("sources") or []:
                with st.expander(f"score {hit.get('score', 0):.3f}"):
                    st.markdown(hit.get("text", ""))
        else:
            st.error(data.get("error") or f"Request failed: {r.status_code}")
    except requests.RequestException as e:
        st.error(f"Request failed: {e}")

# --- Chat with the agent ---
st.subheader("Ask the assistant")
question = st.chat_input("Ask about institutions and professors")
if question:
    with st.chat_message("user"):
        st.markdown(question)
    with st.chat_message("assistant"):
        placeholder = st.empty()
        answer = ""
        try:
            with requests.post(
                f"{API_BASE}/query/stream",
                json={"question": question, "session_id": st.session_state.session_id},
                stream=True,
                timeout=300,
            ) as r:
                for event_type, data in _sse_events(r):
                    if event_type == "answer_delta":
                        answer += data.get("content", "")
                        placeholder.markdown(answer)
                    elif event_type == "tool":
                        st.caption(f"Using tool: {data.get('name', '')}")
                    elif event_type == "done":
                        answer = data.get("answer", answer)
                        placeholder.markdown(answer)
                    elif event_type == "error":
                        st.error(data.get("message", "Agent error"))
        except requests.RequestException as e:
            st.error(f"Request failed: {e}")
