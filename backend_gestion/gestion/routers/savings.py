from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db, storage_errors
from ..errors import Conflict, NotFound, ValidationError
from ..models import Project, Saving
from ..schemas import MessageOut, SavingCreate, SavingListItem, SavingOut, SavingUpdate

router = APIRouter(
    prefix="/api/ahorros",
    tags=["Ahorros"],
    dependencies=[Depends(require_admin)],
)

DUPLICATE_MESSAGE = "Proyecto ya tiene ahorro. Use PUT."


@router.get("", response_model=List[SavingListItem])
def list_savings(db: Session = Depends(get_db)):
    with storage_errors(db, "Error al obtener ahorros"):
        rows = (
            db.query(Saving, Project.name, Project.area, Project.encargado)
            .join(Project, Project.id == Saving.project_id)
            .order_by(Saving.created_at.desc(), Saving.id.desc())
            .all()
        )
        return [
            SavingListItem(
                **SavingOut.model_validate(saving).model_dump(),
                project_name=name,
                project_area=area,
                project_encargado=encargado,
            )
            for saving, name, area, encargado in rows
        ]


@router.get("/{saving_id}", response_model=SavingOut)
def get_saving(saving_id: int, db: Session = Depends(get_db)):
    with storage_errors(db, "Error al obtener ahorro"):
        saving = db.query(Saving).filter(Saving.id == saving_id).first()
    if not saving:
        raise NotFound("Ahorro no encontrado")
    return saving


@router.post("", response_model=SavingOut, status_code=201)
def create_saving(payload: SavingCreate, db: Session = Depends(get_db)):
    if not payload.project_id or payload.amount is None or not payload.date:
        raise ValidationError("project_id, amount y date requeridos")

    with storage_errors(db, "Error al crear ahorro"):
        if not db.query(Project.id).filter(Project.id == payload.project_id).first():
            raise NotFound("Proyecto no encontrado")
        if db.query(Saving.id).filter(Saving.project_id == payload.project_id).first():
            raise Conflict(DUPLICATE_MESSAGE)

        saving = Saving(**payload.model_dump())
        db.add(saving)
        try:
            db.commit()
        except IntegrityError:
            # Otro request creó el ahorro entre la verificación y el insert
            db.rollback()
            raise Conflict(DUPLICATE_MESSAGE)
        db.refresh(saving)
    return saving


@router.put("/{saving_id}", response_model=SavingOut)
def update_saving(saving_id: int, payload: SavingUpdate, db: Session = Depends(get_db)):
    with storage_errors(db, "Error al actualizar ahorro"):
        saving = db.query(Saving).filter(Saving.id == saving_id).with_for_update().first()
        if not saving:
            raise NotFound("Ahorro no encontrado")

        for field, value in payload.model_dump(exclude_none=True).items():
            setattr(saving, field, value)
        db.commit()
        db.refresh(saving)
    return saving


@router.delete("/{saving_id}", response_model=MessageOut)
def delete_saving(saving_id: int, db: Session = Depends(get_db)):
    with storage_errors(db, "Error al eliminar ahorro"):
        saving = db.query(Saving).filter(Saving.id == saving_id).first()
        if not saving:
            raise NotFound("Ahorro no encontrado")
        db.delete(saving)
        db.commit()
    return {"message": "Ahorro eliminado"}
