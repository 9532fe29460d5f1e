from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db, storage_errors
from ..models import Project, Saving, Ticket
from ..schemas import DashboardOut, ProjectOut, RecentProject

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])

OPEN_STATUS = "Abierto"
CRITICAL_PRIORITY = "Critica"
RECENT_LIMIT = 5


@router.get("", response_model=DashboardOut, dependencies=[Depends(require_admin)])
def dashboard(db: Session = Depends(get_db)):
    # Sin caché: se recalcula en cada llamada
    with storage_errors(db, "Error dashboard"):
        total_projects = db.query(func.count(Project.id)).scalar() or 0
        open_tickets = (
            db.query(func.count(Ticket.id)).filter(Ticket.status == OPEN_STATUS).scalar() or 0
        )
        critical_tickets = (
            db.query(func.count(Ticket.id))
            .filter(Ticket.status == OPEN_STATUS, Ticket.priority == CRITICAL_PRIORITY)
            .scalar()
            or 0
        )
        total_savings = db.query(func.coalesce(func.sum(Saving.amount), 0)).scalar() or 0

        recent = (
            db.query(Project, Saving.amount)
            .outerjoin(Saving, Saving.project_id == Project.id)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .limit(RECENT_LIMIT)
            .all()
        )
        recent_projects = [
            RecentProject(**ProjectOut.model_validate(p).model_dump(), savings_amount=amount)
            for p, amount in recent
        ]

    return {
        "totalProyectos": total_projects,
        "ticketsAbiertos": open_tickets,
        "ticketsCriticos": critical_tickets,
        "totalAhorros": float(total_savings),
        "recentProjects": recent_projects,
    }
