from fastapi import APIRouter
from fastapi.responses import JSONResponse

from apps import db, settings

router = APIRouter(tags=["monitoring"])


@router.get("/health")
def health_view():
    """Liveness/readiness probe; 503 when the database does not answer."""
    if getattr(settings, "USE_IN_MEMORY_STORE", False):
        components = {"db": {"ok": True, "backend": "memory"}}
    else:
        components = {"db": {"ok": db.ping(), "backend": "sql"}}

    ok = all(c["ok"] for c in components.values())
    code = 200 if ok else 503
    return JSONResponse({"ok": ok, "components": components}, status_code=code)
