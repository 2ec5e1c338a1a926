"""API router for v1 endpoints."""

from fastapi import APIRouter

from deposim.api import catalog, documents, exports, messages, sessions

router = APIRouter()

# Session lifecycle and settings
router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])

# Examination turns and briefings
router.include_router(messages.router, prefix="/sessions", tags=["messages"])

# Transcript and role-instruction files
router.include_router(exports.router, prefix="/sessions", tags=["exports"])

# Exhibits and scenario manifest
router.include_router(documents.router, tags=["documents"])

# Providers and role presets
router.include_router(catalog.router, tags=["catalog"])
