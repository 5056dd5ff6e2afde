from fastapi import APIRouter

router = APIRouter(tags=["health"])

@router.get("/health")
def health():
    # Check si l'API est up
    return {"status": "ok"}
