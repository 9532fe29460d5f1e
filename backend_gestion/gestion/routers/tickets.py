import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from pydantic import ValidationError as PayloadError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from ..auth import require_admin
from ..config import get_settings
from ..database import get_db, storage_errors
from ..errors import InternalError, NotFound, ValidationError
from ..models import Ticket
from ..notifier import notify_new_ticket
from ..schemas import MessageOut, TicketCreate, TicketOut, TicketUpdate
from ..storage import AttachmentStorage

log = logging.getLogger("gestion.routers.tickets")

router = APIRouter(prefix="/api/tickets", tags=["Tickets"])


def get_storage() -> AttachmentStorage:
    return AttachmentStorage(get_settings().storage_dir)


async def _read_ticket_form(request: Request):
    """Acepta JSON o multipart (con el archivo opcional en `attachment`)."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            raise ValidationError("JSON inválido")
        if not isinstance(data, dict):
            raise ValidationError("JSON inválido")
        return data, None

    form = await request.form()
    upload = form.get("attachment")
    data = {k: v for k, v in form.items() if k != "attachment"}
    if not isinstance(upload, UploadFile) or not upload.filename:
        upload = None
    return data, upload


# ================== Intake público ==================

@router.post("", response_model=TicketOut, status_code=201)
async def create_ticket(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    storage: AttachmentStorage = Depends(get_storage),
):
    data, upload = await _read_ticket_form(request)
    try:
        payload = TicketCreate(**{k: v for k, v in data.items() if v not in (None, "")})
    except PayloadError:
        raise ValidationError("date, subject y description requeridos")
    if not payload.date or not payload.subject or not payload.description:
        raise ValidationError("date, subject y description requeridos")

    content = None
    if upload is not None:
        limit = get_settings().max_attachment_bytes
        # Nunca se lee más de limit + 1 bytes
        content = await upload.read(limit + 1)
        if len(content) > limit:
            raise ValidationError("El adjunto supera el tamaño máximo permitido")

    def _save() -> dict:
        attachment_url = None
        if upload is not None:
            try:
                attachment_url = storage.upload(upload.filename, content)
            except OSError:
                log.exception("No se pudo guardar el adjunto")
                raise InternalError("Error al crear ticket")

        try:
            with storage_errors(db, "Error al crear ticket"):
                ticket = Ticket(
                    date=payload.date,
                    subject=payload.subject,
                    description=payload.description,
                    priority=payload.priority or "Media",
                    attachment=attachment_url,
                )
                db.add(ticket)
                db.commit()
                db.refresh(ticket)
        except InternalError:
            # Sin registro no debe quedar el archivo huérfano
            if attachment_url:
                try:
                    storage.delete(attachment_url)
                except (OSError, ValueError) as exc:
                    log.warning("No se pudo eliminar el adjunto %s: %s", attachment_url, exc)
            raise
        return TicketOut.model_validate(ticket).model_dump()

    ticket = await run_in_threadpool(_save)
    # Fire-and-forget: corre después de enviar la respuesta
    background_tasks.add_task(notify_new_ticket, ticket)
    return ticket


# ================== Gestión (solo admin) ==================

@router.get("", response_model=List[TicketOut], dependencies=[Depends(require_admin)])
def list_tickets(db: Session = Depends(get_db)):
    with storage_errors(db, "Error al obtener tickets"):
        return db.query(Ticket).order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()


@router.get("/{ticket_id}", response_model=TicketOut, dependencies=[Depends(require_admin)])
def get_ticket(ticket_id: int, db: Session = Depends(get_db)):
    with storage_errors(db, "Error al obtener ticket"):
        ticket = db.query(Ticket).filter(Ticket.id == ticket_id).first()
    if not ticket:
        raise NotFound("Ticket no encontrado")
    return ticket


@router.put("/{ticket_id}", response_model=TicketOut, dependencies=[Depends(require_admin)])
def update_ticket(ticket_id: int, payload: TicketUpdate, db: Session = Depends(get_db)):
    with storage_errors(db, "Error al actualizar ticket"):
        ticket = db.query(Ticket).filter(Ticket.id == ticket_id).with_for_update().first()
        if not ticket:
            raise NotFound("Ticket no encontrado")

        for field, value in payload.model_dump(exclude_none=True).items():
            setattr(ticket, field, value)
        db.commit()
        db.refresh(ticket)
    return ticket


@router.delete("/{ticket_id}", response_model=MessageOut, dependencies=[Depends(require_admin)])
def delete_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    storage: AttachmentStorage = Depends(get_storage),
):
    with storage_errors(db, "Error al eliminar ticket"):
        ticket = db.query(Ticket).filter(Ticket.id == ticket_id).first()
        if not ticket:
            raise NotFound("Ticket no encontrado")
        attachment: Optional[str] = ticket.attachment

    # Limpieza del adjunto: best-effort, no bloquea el borrado del registro
    if attachment:
        try:
            storage.delete(attachment)
        except (OSError, ValueError) as exc:
            log.warning("No se pudo eliminar el adjunto %s: %s", attachment, exc)

    with storage_errors(db, "Error al eliminar ticket"):
        db.delete(ticket)
        db.commit()
    return {"message": "Ticket eliminado"}
