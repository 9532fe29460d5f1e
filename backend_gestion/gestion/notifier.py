"""Alerta por correo de tickets nuevos.

Se ejecuta como tarea en segundo plano: un fallo aquí se registra en el log y
nunca afecta la respuesta del ticket.
"""

import logging
import smtplib
from email.message import EmailMessage
from html import escape
from typing import Optional

from .config import Settings, get_settings

log = logging.getLogger("gestion.notifier")


def build_ticket_email(ticket: dict, sender: str, recipient: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = recipient
    msg["Subject"] = f"Nuevo Ticket Creado: #{ticket['id']} - {ticket['subject']}"
    msg.set_content(
        f"Se ha registrado un nuevo ticket en el sistema.\n\n"
        f"ID del Ticket: #{ticket['id']}\n"
        f"Asunto: {ticket['subject']}\n"
        f"Descripción: {ticket['description']}\n"
        f"Prioridad: {ticket['priority']}\n"
    )
    msg.add_alternative(
        f"""
        <div style="font-family: Arial, sans-serif; color: #333;">
            <h2 style="color: #105788;">Se ha registrado un nuevo ticket en el sistema</h2>
            <p><strong>ID del Ticket:</strong> #{ticket['id']}</p>
            <p><strong>Asunto:</strong> {escape(str(ticket['subject']))}</p>
            <p><strong>Descripción:</strong> {escape(str(ticket['description']))}</p>
            <p><strong>Prioridad:</strong> {escape(str(ticket['priority']))}</p>
            <hr style="border: none; border-top: 1px solid #eee; margin: 20px 0;">
            <p style="font-size: 0.9em; color: #666;">Por favor, revisa el dashboard para gestionarlo lo antes posible.</p>
        </div>
        """,
        subtype="html",
    )
    return msg


def notify_new_ticket(ticket: Optional[dict], settings: Optional[Settings] = None) -> bool:
    """Envía la alerta del ticket. Devuelve True si el correo salió (o se simuló)."""
    settings = settings or get_settings()
    if not ticket:
        log.error("Alerta de correo cancelada: el ticket proporcionado es nulo.")
        return False

    if not settings.smtp_host:
        log.info("[SIMULACIÓN EMAIL] Alerta de ticket #%s (%s)", ticket["id"], ticket["subject"])
        return True

    try:
        msg = build_ticket_email(ticket, settings.email_from, settings.email_to)
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if settings.smtp_user:
                smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(msg)
    except Exception:
        # Tarea desacoplada del request: el error solo se registra
        log.exception("Error enviando correo de alerta del ticket #%s", ticket.get("id"))
        return False

    log.info("Alerta de ticket #%s enviada a %s", ticket["id"], settings.email_to)
    return True
