import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db, storage_errors
from ..errors import NotFound, ValidationError
from ..models import Advance, Project
from ..progress import clamp_progress, lock_project, refresh_project_progress
from ..schemas import AdvanceCreate, AdvanceOut, MessageOut

log = logging.getLogger("gestion.routers.advances")

router = APIRouter(
    prefix="/api",
    tags=["Avances"],
    dependencies=[Depends(require_admin)],
)


@router.get("/proyectos/{project_id}/avances", response_model=List[AdvanceOut])
def list_advances(project_id: int, db: Session = Depends(get_db)):
    with storage_errors(db, "Error al obtener avances"):
        if not db.query(Project.id).filter(Project.id == project_id).first():
            raise NotFound("Proyecto no encontrado")
        return (
            db.query(Advance)
            .filter(Advance.project_id == project_id)
            .order_by(Advance.date.desc(), Advance.id.desc())
            .all()
        )


@router.post("/proyectos/{project_id}/avances", response_model=AdvanceOut, status_code=201)
def create_advance(project_id: int, payload: AdvanceCreate, db: Session = Depends(get_db)):
    if not payload.description or not payload.date:
        raise ValidationError("description y date requeridos")

    with storage_errors(db, "Error al crear avance"):
        project = lock_project(db, project_id)
        if not project:
            raise NotFound("Proyecto no encontrado")

        advance = Advance(
            project_id=project.id,
            description=payload.description,
            date=payload.date,
            progress=clamp_progress(payload.progress),
        )
        db.add(advance)
        # Mismo commit para el avance y el progreso del proyecto
        refresh_project_progress(db, project)
        db.commit()
        db.refresh(advance)
    log.info("Avance %s creado; proyecto %s en %s%%", advance.id, project_id, project.progress)
    return advance


@router.delete("/avances/{advance_id}", response_model=MessageOut)
def delete_advance(advance_id: int, db: Session = Depends(get_db)):
    with storage_errors(db, "Error al eliminar avance"):
        advance = db.query(Advance).filter(Advance.id == advance_id).first()
        if not advance:
            raise NotFound("Avance no encontrado")

        project = lock_project(db, advance.project_id)
        db.delete(advance)
        if project is not None:
            refresh_project_progress(db, project)
        db.commit()
    return {"message": "Avance eliminado"}
