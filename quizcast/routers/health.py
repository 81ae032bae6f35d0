from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(prefix="", tags=["health"])


@router.get("/", response_class=PlainTextResponse)
@router.get("/health", response_class=PlainTextResponse)
async def health() -> str:
    return "status: ok"
