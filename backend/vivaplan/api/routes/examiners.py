from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from vivaplan.api.deps import get_current_user, get_db, require_roles
from vivaplan.models.examiner import Examiner
from vivaplan.models.user import User, UserRole
from vivaplan.schemas.directory import ExaminerCreate, ExaminerOut
from vivaplan.services.directory import get_examiner_or_404
from vivaplan.services.friendly_ids import next_examiner_code

router = APIRouter()


@router.get("/", response_model=list[ExaminerOut])
def list_examiners(
    department: str | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ExaminerOut]:
    statement = select(Examiner).order_by(Examiner.examiner_code)
    if department:
        statement = statement.where(Examiner.department == department.strip().upper())
    return list(db.execute(statement).scalars())


@router.post("/", response_model=ExaminerOut, status_code=status.HTTP_201_CREATED)
def create_examiner(
    payload: ExaminerCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ExaminerOut:
    existing = db.execute(select(Examiner).where(Examiner.email == payload.email)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Examiner email already exists")
    examiner = Examiner(examiner_code=next_examiner_code(db), **payload.model_dump())
    db.add(examiner)
    db.commit()
    db.refresh(examiner)
    return examiner


@router.get("/{examiner_id}", response_model=ExaminerOut)
def get_examiner(
    examiner_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ExaminerOut:
    return get_examiner_or_404(db, examiner_id)
