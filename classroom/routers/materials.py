from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from classroom.core.access import enrolled_student_ids, ensure_can_view_class, ensure_class_owner
from classroom.core.current_user import get_current_user
from classroom.core.deps import PageParams, get_db
from classroom.core.permissions import require_student, require_teacher
from classroom.models.class_student import ClassStudent
from classroom.models.material import Material
from classroom.models.user import User
from classroom.schemas.material import MaterialCreate, MaterialRead, MaterialUpdate
from classroom.schemas.pagination import Page
from classroom.services.activity import log_activity, notify_users
from classroom.services.pagination import paginate

router = APIRouter(tags=["materials"])

REQUIRED_FIELDS = {"title", "file_url"}


def _ensure_material_exists(db: Session, material_id: int) -> Material:
    material = db.query(Material).filter(Material.id == material_id).first()
    if not material:
        raise HTTPException(status_code=404, detail="Material not found")
    return material


def _newest_first():
    return (Material.created_at.desc(), Material.id.desc())


@router.get("/classes/{class_id}/materials", response_model=Page[MaterialRead])
def list_class_materials(
    class_id: int,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_can_view_class(db, class_id, current_user)
    materials = (
        db.query(Material)
        .filter(Material.class_id == class_id)
        .order_by(*_newest_first())
        .all()
    )
    return paginate(materials, paging.page, paging.page_size).to_dict()


@router.post(
    "/classes/{class_id}/materials",
    response_model=MaterialRead,
    status_code=status.HTTP_201_CREATED,
)
def upload_material(
    class_id: int,
    payload: MaterialCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)

    material = Material(class_id=class_id, created_by=teacher.id, **payload.model_dump())
    db.add(material)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(material)

    log_activity(db, teacher.id, "create", "material", material.id, f"Uploaded material {material.title}")
    notify_users(
        db,
        enrolled_student_ids(db, class_id),
        title="Materi Baru",
        message=f'Materi "{material.title}" telah diupload',
        link=f"/student/classes/{class_id}",
    )
    return material


@router.get("/materials/me", response_model=Page[MaterialRead])
def my_materials(
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    materials = (
        db.query(Material)
        .join(ClassStudent, ClassStudent.class_id == Material.class_id)
        .filter(ClassStudent.student_id == me.id)
        .order_by(*_newest_first())
        .all()
    )
    return paginate(materials, paging.page, paging.page_size).to_dict()


@router.get("/materials/{material_id}", response_model=MaterialRead)
def get_material(
    material_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    material = _ensure_material_exists(db, material_id)
    ensure_can_view_class(db, material.class_id, current_user)
    return material


@router.patch("/materials/{material_id}", response_model=MaterialRead)
def update_material(
    material_id: int,
    payload: MaterialUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    material = _ensure_material_exists(db, material_id)
    ensure_class_owner(db, material.class_id, teacher)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in REQUIRED_FIELDS:
            continue
        setattr(material, field, value)
    material.updated_by = teacher.id

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(material)
    log_activity(db, teacher.id, "update", "material", material.id, f"Updated material {material.title}")
    return material


@router.delete("/materials/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_material(
    material_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    material = _ensure_material_exists(db, material_id)
    ensure_class_owner(db, material.class_id, teacher)
    title = material.title

    db.delete(material)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    log_activity(db, teacher.id, "delete", "material", material_id, f"Deleted material {title}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
