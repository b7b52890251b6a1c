from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from vivaplan.api.deps import get_current_user, get_db, require_roles
from vivaplan.models.student_group import StudentGroup
from vivaplan.models.timetable import Timetable
from vivaplan.models.user import User, UserRole
from vivaplan.schemas.group import GroupCreate, GroupCreated, GroupOut, GroupUpdate
from vivaplan.schemas.presentation import MessageOut
from vivaplan.services.audit import log_activity
from vivaplan.services.directory import resolve_students
from vivaplan.services.friendly_ids import next_group_code
from vivaplan.services.groups import ensure_unassigned, get_group_or_404

router = APIRouter()


@router.post("/", response_model=GroupCreated, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: GroupCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> GroupCreated:
    students = resolve_students(db, payload.students)
    ensure_unassigned(db, students)

    group = StudentGroup(group_code=next_group_code(db), department=payload.department, students=students)
    db.add(group)
    db.flush()
    log_activity(db, user=current_user, action="group.created", entity_type="group", entity_id=group.id)
    db.commit()
    return GroupCreated(message="Student group created successfully", group_id=group.group_code)


@router.get("/", response_model=list[GroupOut])
def list_groups(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[GroupOut]:
    return list(db.execute(select(StudentGroup).order_by(StudentGroup.group_code)).scalars())


@router.get("/{group_id}", response_model=GroupOut)
def get_group(
    group_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> GroupOut:
    return get_group_or_404(db, group_id)


@router.put("/{group_id}", response_model=GroupOut)
def update_group(
    group_id: str,
    payload: GroupUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> GroupOut:
    group = get_group_or_404(db, group_id)
    if payload.students is not None:
        students = resolve_students(db, payload.students)
        ensure_unassigned(db, students, exclude_group_id=group.id)
        group.students = students
    if payload.department is not None:
        group.department = payload.department.strip()
    log_activity(db, user=current_user, action="group.updated", entity_type="group", entity_id=group.id)
    db.commit()
    db.refresh(group)
    return group


@router.delete("/{group_id}", response_model=MessageOut)
def delete_group(
    group_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> MessageOut:
    group = get_group_or_404(db, group_id)
    db.execute(delete(Timetable).where(Timetable.group_id == group.id))
    db.delete(group)
    log_activity(db, user=current_user, action="group.deleted", entity_type="group", entity_id=group.id)
    db.commit()
    return MessageOut(message="Student group deleted successfully")
