from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agentic_rag.api.routes.decompose import router as decompose_router
from agentic_rag.api.routes.search import router as search_router
from agentic_rag.config import settings
from agentic_rag.logging_config import configure_logging

configure_logging(settings.log_level)

app = FastAPI(
    title="Agentic Retrieval API",
    description="Query decomposition and multimodal (transcript + frame) search",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_origin_regex=r"https://.*\.vercel\.app|http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(decompose_router)
app.include_router(search_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
