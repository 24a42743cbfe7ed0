from fastapi import APIRouter

from filesmith import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "filesmith", "version": __version__}
