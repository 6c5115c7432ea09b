from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.auth import SessionUser, authenticate, clear_session_cookie, get_current_user, set_session_cookie
from app.core.config import get_settings
from app.core.database import get_db
from app.crm.api import crm_routers
from app.crm.schemas import DataResponse, LoginRequest, SuccessRead, UserRead
from app.metrics import generate_metrics_payload, metrics_content_type


router = APIRouter()
for crm_router in crm_routers:
    router.include_router(crm_router)


@router.get("/api/health", tags=["system"])
def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
    }


@router.post("/api/auth/login", response_model=DataResponse[UserRead], tags=["auth"])
def login(dto: LoginRequest, response: Response, db: Session = Depends(get_db)) -> DataResponse[UserRead]:
    user = authenticate(db, dto.email, dto.password)
    set_session_cookie(response, user.id)
    return DataResponse(data=UserRead(id=user.id, email=user.email, name=user.name))


@router.post("/api/auth/logout", response_model=DataResponse[SuccessRead], tags=["auth"])
def logout(response: Response) -> DataResponse[SuccessRead]:
    clear_session_cookie(response)
    return DataResponse(data=SuccessRead())


@router.get("/api/auth/me", response_model=DataResponse[UserRead], tags=["auth"])
def me(user: SessionUser = Depends(get_current_user)) -> DataResponse[UserRead]:
    return DataResponse(data=UserRead(id=user.id, email=user.email, name=user.name))


@router.get("/metrics", tags=["system"])
def metrics() -> Response:
    settings = get_settings()
    if not settings.metrics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return Response(content=generate_metrics_payload(), media_type=metrics_content_type())
