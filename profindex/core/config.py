"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Components receive these values through their constructors; only the
module-level default factories read them directly.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# OpenAlex academic graph (no key required; mailto joins the polite pool)
OPENALEX_BASE_URL: str = (
    os.getenv("OPENALEX_BASE_URL", "https://api.openalex.org").strip().rstrip("/")
    or "https://api.openalex.org"
)
OPENALEX_ENTITY_BASE: str = "https://openalex.org"
OPENALEX_MAILTO: str = os.getenv("OPENALEX_MAILTO", "").strip()
OPENALEX_TIMEOUT: float = 30.0

# Harvest limits. The page ceiling is a cost cap applied regardless of remaining data.
HARVEST_PAGE_SIZE: int = 200
HARVEST_MAX_PAGE_SIZE: int = 200
HARVEST_MAX_PAGES: int = 5
MIN_TWO_YEAR_MEAN_CITEDNESS: int = 5

# Directory lookups (institution / author search)
DIRECTORY_PAGE_SIZE: int = 20
DIRECTORY_MAX_PAGE_SIZE: int = 50

# Scoped stores are named "{STORE_BASE_NAME}-{institution_key}"
STORE_BASE_NAME: str = os.getenv("PROFINDEX_STORE", "professors").strip() or "professors"
PROFILES_FILENAME: str = "professors.md"
PROFILES_KIND: str = "professors"

# Query guard
MAX_QUERY_LENGTH: int = 240
MAX_OR_CLAUSES: int = 4

# Responses
MAX_RETURNED_AUTHORS: int = 5
DEFAULT_TOP_K: int = 10

# Milvus (from env). MILVUS_URI may also point at a local Milvus Lite file.
MILVUS_URI: str = os.getenv("MILVUS_URI", "").strip()
MILVUS_TOKEN: str = os.getenv("MILVUS_TOKEN", "").strip()

# Hugging Face (embeddings / rerank / fallback LLM)
HF_API_KEY: str = os.getenv("HF_API_KEY", "").strip()
VECTOR_DIM: int = 384
HF_EMBED_MODEL: str = "sentence-transformers/all-MiniLM-L6-v2"
HF_RERANK_MODEL: str = "BAAI/bge-reranker-base"
EMBED_BATCH_SIZE: int = 32
SEARCH_CANDIDATES: int = 50

# API timeouts (seconds)
EMBED_API_TIMEOUT: float = 30.0
RERANK_API_TIMEOUT: float = 60.0
LLM_API_TIMEOUT: float = 60.0

# Hugging Face chat (fallback LLM)
HF_CHAT_URL: str = "https://router.huggingface.co/v1/chat/completions"

# Agent
MAX_AGENTIC_ROUNDS: int = 8
AGENT_MAX_TOKENS: int = 1024
ANSWER_MAX_TOKENS: int = 512

# OpenAI (agent LLM). When set, the agent uses OpenAI instead of Hugging Face.
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
)

# HF LLM (fallback when OPENAI_API_KEY is not set). Router chat completions require a chat model.
HF_LLM_MODEL: str = (
    os.getenv("HF_LLM_MODEL", "meta-llama/Llama-3.2-3B-Instruct").strip()
    or "meta-llama/Llama-3.2-3B-Instruct"
)
