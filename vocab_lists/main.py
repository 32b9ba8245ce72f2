from __future__ import annotations
from fastapi import FastAPI

from vocab_lists.config import settings
from vocab_lists.db.database import init_db
from vocab_lists.logging_config import init_logging, init_request_logging
from vocab_lists.web.errors import register_error_handlers
from vocab_lists.web.routers import ai, auth, items, lists, runs

init_logging(settings)

app = FastAPI(title="Vocabulary Lists")

@app.on_event("startup")
def on_startup() -> None:
    init_db()

init_request_logging(app)
register_error_handlers(app)

app.include_router(auth.router)
app.include_router(lists.router)
app.include_router(items.router)
app.include_router(runs.router)
app.include_router(ai.router)

def run() -> None:
    import uvicorn

    uvicorn.run("vocab_lists.main:app", host="127.0.0.1", port=8000)
