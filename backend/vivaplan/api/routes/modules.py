from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from vivaplan.api.deps import get_current_user, get_db, require_roles
from vivaplan.models.module import Module
from vivaplan.models.user import User, UserRole
from vivaplan.schemas.directory import ModuleCreate, ModuleOut

router = APIRouter()


@router.get("/", response_model=list[ModuleOut])
def list_modules(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[ModuleOut]:
    return list(db.execute(select(Module).order_by(Module.module_code)).scalars())


@router.post("/", response_model=ModuleOut, status_code=status.HTTP_201_CREATED)
def create_module(
    payload: ModuleCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ModuleOut:
    existing = db.execute(select(Module).where(Module.module_code == payload.module_code)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Module code already exists")
    module = Module(**payload.model_dump())
    db.add(module)
    db.commit()
    db.refresh(module)
    return module
