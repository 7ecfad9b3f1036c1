"""API router for v1 endpoints."""

from fastapi import APIRouter

from brd_engine.api import brd, chat, documents, projects

router = APIRouter()

router.include_router(projects.router, prefix="/projects", tags=["projects"])

router.include_router(documents.router, prefix="/documents", tags=["documents"])

router.include_router(chat.router, tags=["chat"])

router.include_router(brd.router, tags=["brd"])
