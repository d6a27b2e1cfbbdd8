from fastapi import APIRouter


router = APIRouter()


@router.get("/api_status/")
async def api_status():
    return {"status": "ok"}
