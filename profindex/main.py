# Run from project root: uvicorn profindex.main:app --reload

import logging

from fastapi import FastAPI

from profindex.api.routes import router
from profindex.mcp.server import mcp_router

logging.basicConfig(level=logging.INFO)


app = FastAPI(title="Professor Index Backend")
app.include_router(router)
app.include_router(mcp_router, prefix="/mcp")
