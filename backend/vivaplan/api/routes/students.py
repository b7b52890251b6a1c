from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from vivaplan.api.deps import get_current_user, get_db, require_roles
from vivaplan.models.student import Student
from vivaplan.models.user import User, UserRole
from vivaplan.schemas.directory import StudentCreate, StudentOut
from vivaplan.services.directory import get_student_or_404
from vivaplan.services.friendly_ids import next_student_code

router = APIRouter()


@router.get("/", response_model=list[StudentOut])
def list_students(
    department: str | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[StudentOut]:
    statement = select(Student).order_by(Student.student_code)
    if department:
        statement = statement.where(Student.department == department.strip().upper())
    return list(db.execute(statement).scalars())


@router.post("/", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
def create_student(
    payload: StudentCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> StudentOut:
    existing = db.execute(select(Student).where(Student.email == payload.email)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Student email already exists")
    student = Student(student_code=next_student_code(db, payload.department), **payload.model_dump())
    db.add(student)
    db.commit()
    db.refresh(student)
    return student


@router.get("/{student_id}", response_model=StudentOut)
def get_student(
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> StudentOut:
    return get_student_or_404(db, student_id)
