"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from deposim.api import router as api_router
from deposim.core.deposition_session import SessionStore

app = FastAPI(
    title="Deposition Simulator",
    description="LLM role-play of witness, opposing counsel and judge for deposition practice",
    version="0.1.0",
)

# Sessions live in process memory
app.state.sessions = SessionStore()


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


# Include v1 API router
app.include_router(api_router, prefix="/v1", tags=["v1"])
