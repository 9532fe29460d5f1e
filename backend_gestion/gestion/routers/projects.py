from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db, storage_errors
from ..errors import NotFound, ValidationError
from ..models import Project, Saving
from ..schemas import (
    MessageOut,
    ProjectCreate,
    ProjectListItem,
    ProjectOut,
    ProjectUpdate,
)

# Todo el módulo de proyectos es solo admin
router = APIRouter(
    prefix="/api/proyectos",
    tags=["Proyectos"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=List[ProjectListItem])
def list_projects(db: Session = Depends(get_db)):
    with storage_errors(db, "Error al obtener proyectos"):
        rows = (
            db.query(Project, Saving.amount, Saving.status)
            .outerjoin(Saving, Saving.project_id == Project.id)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .all()
        )
        return [
            ProjectListItem(
                **ProjectOut.model_validate(project).model_dump(),
                savings_amount=amount,
                savings_status=saving_status,
            )
            for project, amount, saving_status in rows
        ]


@router.get("/{project_id}", response_model=ProjectOut)
def get_project(project_id: int, db: Session = Depends(get_db)):
    with storage_errors(db, "Error al obtener proyecto"):
        project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise NotFound("Proyecto no encontrado")
    return project


@router.post("", response_model=ProjectOut, status_code=201)
def create_project(payload: ProjectCreate, db: Session = Depends(get_db)):
    if not (payload.area and payload.encargado and payload.leader and payload.name):
        raise ValidationError("area, encargado, leader y name son requeridos")

    with storage_errors(db, "Error al crear proyecto"):
        # El progreso arranca en 0: solo lo mueven los avances
        project = Project(
            area=payload.area,
            encargado=payload.encargado,
            leader=payload.leader,
            name=payload.name,
            status=payload.status or "En Progreso",
            progress=0,
        )
        db.add(project)
        db.commit()
        db.refresh(project)
    return project


@router.put("/{project_id}", response_model=ProjectOut)
def update_project(project_id: int, payload: ProjectUpdate, db: Session = Depends(get_db)):
    with storage_errors(db, "Error al actualizar proyecto"):
        project = (
            db.query(Project).filter(Project.id == project_id).with_for_update().first()
        )
        if not project:
            raise NotFound("Proyecto no encontrado")

        for field, value in payload.model_dump(exclude_none=True).items():
            setattr(project, field, value)
        db.commit()
        db.refresh(project)
    return project


@router.delete("/{project_id}", response_model=MessageOut)
def delete_project(project_id: int, db: Session = Depends(get_db)):
    with storage_errors(db, "Error al eliminar proyecto"):
        project = db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise NotFound("Proyecto no encontrado")

        # Avances y ahorro se borran en cascada
        db.delete(project)
        db.commit()
    return {"message": "Proyecto eliminado"}
