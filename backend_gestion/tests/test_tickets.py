import smtplib

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from gestion.config import get_settings
from gestion.notifier import build_ticket_email, notify_new_ticket
from gestion.storage import AttachmentStorage

TICKET = {"date": "2025-04-01", "subject": "Impresora", "description": "No imprime"}


def create_ticket(client, **extra):
    res = client.post("/api/tickets", json={**TICKET, **extra})
    assert res.status_code == 201, res.text
    return res.json()


def test_public_ticket_creation_without_token(client):
    res = client.post("/api/tickets", json=TICKET)
    assert res.status_code == 201
    data = res.json()
    assert data["status"] == "Abierto"
    assert data["priority"] == "Media"
    assert data["attachment"] is None


def test_ticket_creation_accepts_form_fields(client):
    res = client.post("/api/tickets", data={**TICKET, "priority": "Alta"})
    assert res.status_code == 201
    assert res.json()["priority"] == "Alta"


@pytest.mark.parametrize("missing", ["date", "subject", "description"])
def test_ticket_requires_fields(client, missing):
    body = {k: v for k, v in TICKET.items() if k != missing}
    res = client.post("/api/tickets", json=body)
    assert res.status_code == 400


def test_ticket_with_bad_date_is_400(client):
    res = client.post("/api/tickets", json={**TICKET, "date": "ayer"})
    assert res.status_code == 400


def test_ticket_with_attachment_is_stored_and_served(client):
    res = client.post(
        "/api/tickets",
        data=TICKET,
        files={"attachment": ("captura.png", b"\x89PNG fake", "image/png")},
    )
    assert res.status_code == 201
    uri = res.json()["attachment"]
    assert uri.startswith("/storage/tickets/")
    assert uri.endswith(".png")

    served = client.get(uri)
    assert served.status_code == 200
    assert served.content == b"\x89PNG fake"


def test_attachment_over_limit_is_rejected(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "max_attachment_bytes", 4)
    res = client.post(
        "/api/tickets",
        data=TICKET,
        files={"attachment": ("grande.txt", b"0123456789", "text/plain")},
    )
    assert res.status_code == 400


def test_attachment_read_is_bounded_by_limit(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "max_attachment_bytes", 4)
    sizes = []
    original_read = UploadFile.read

    async def spy_read(self, size=-1):
        sizes.append(size)
        return await original_read(self, size)

    monkeypatch.setattr(UploadFile, "read", spy_read)
    res = client.post(
        "/api/tickets",
        data=TICKET,
        files={"attachment": ("grande.txt", b"0123456789", "text/plain")},
    )
    assert res.status_code == 400
    assert sizes == [5]


def test_attachment_at_limit_is_accepted(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "max_attachment_bytes", 4)
    res = client.post(
        "/api/tickets",
        data=TICKET,
        files={"attachment": ("justo.txt", b"0123", "text/plain")},
    )
    assert res.status_code == 201


def test_failed_insert_removes_stored_attachment(client, monkeypatch):
    storage = AttachmentStorage(get_settings().storage_dir)
    folder = storage.root / storage.folder
    before = set(folder.iterdir())

    def broken_commit(self):
        raise OperationalError("INSERT INTO tickets", {}, Exception("disco lleno"))

    monkeypatch.setattr(Session, "commit", broken_commit)
    res = client.post(
        "/api/tickets",
        data=TICKET,
        files={"attachment": ("captura.png", b"\x89PNG fake", "image/png")},
    )
    assert res.status_code == 500
    assert res.json() == {"detail": "Error al crear ticket"}
    assert set(folder.iterdir()) == before


def test_notification_failure_does_not_fail_creation(client, monkeypatch):
    def broken_smtp(*args, **kwargs):
        raise OSError("smtp caído")

    monkeypatch.setattr(get_settings(), "smtp_host", "smtp.invalid")
    monkeypatch.setattr(smtplib, "SMTP", broken_smtp)

    res = client.post("/api/tickets", json=TICKET)
    assert res.status_code == 201


def test_list_tickets_admin_only(client, admin_headers, default_headers):
    create_ticket(client)
    create_ticket(client, subject="Correo")
    assert client.get("/api/tickets", headers=default_headers).status_code == 403

    rows = client.get("/api/tickets", headers=admin_headers).json()
    assert [r["subject"] for r in rows] == ["Correo", "Impresora"]


def test_get_ticket(client, admin_headers):
    ticket = create_ticket(client)
    res = client.get(f"/api/tickets/{ticket['id']}", headers=admin_headers)
    assert res.json()["subject"] == "Impresora"
    assert client.get("/api/tickets/9999", headers=admin_headers).status_code == 404


def test_update_ticket_is_partial(client, admin_headers):
    ticket = create_ticket(client, priority="Critica")
    res = client.put(
        f"/api/tickets/{ticket['id']}",
        json={"status": "Cerrado"},
        headers=admin_headers,
    )
    assert res.status_code == 200
    data = res.json()
    assert data["status"] == "Cerrado"
    assert data["priority"] == "Critica"
    assert data["subject"] == "Impresora"


def test_update_ticket_requires_admin(client, default_headers):
    ticket = create_ticket(client)
    res = client.put(f"/api/tickets/{ticket['id']}", json={"status": "Cerrado"})
    assert res.status_code == 401
    res = client.put(
        f"/api/tickets/{ticket['id']}", json={"status": "Cerrado"}, headers=default_headers
    )
    assert res.status_code == 403


def test_delete_ticket_releases_attachment(client, admin_headers):
    res = client.post(
        "/api/tickets",
        data=TICKET,
        files={"attachment": ("doc.pdf", b"%PDF-1.4", "application/pdf")},
    )
    ticket = res.json()
    path = AttachmentStorage(get_settings().storage_dir).path_for(ticket["attachment"])
    assert path.exists()

    res = client.delete(f"/api/tickets/{ticket['id']}", headers=admin_headers)
    assert res.status_code == 200
    assert res.json() == {"message": "Ticket eliminado"}
    assert not path.exists()
    assert client.get(f"/api/tickets/{ticket['id']}", headers=admin_headers).status_code == 404


def test_delete_ticket_survives_attachment_cleanup_failure(client, db, admin_headers):
    from gestion.models import Ticket

    ticket = create_ticket(client)
    row = db.get(Ticket, ticket["id"])
    row.attachment = "https://otro-proveedor/archivo.pdf"
    db.commit()

    res = client.delete(f"/api/tickets/{ticket['id']}", headers=admin_headers)
    assert res.status_code == 200


def test_delete_missing_ticket_is_404(client, admin_headers):
    assert client.delete("/api/tickets/9999", headers=admin_headers).status_code == 404


# ===== NOTIFICADOR =====

def test_notify_skips_null_ticket():
    assert notify_new_ticket(None) is False


def test_notify_is_simulated_without_smtp():
    assert notify_new_ticket({"id": 1, "subject": "s", "description": "d", "priority": "Alta"})


def test_ticket_email_content():
    msg = build_ticket_email(
        {"id": 12, "subject": "VPN <caída>", "description": "sin acceso", "priority": "Critica"},
        "from@syp.local",
        "to@syp.local",
    )
    assert msg["Subject"] == "Nuevo Ticket Creado: #12 - VPN <caída>"
    html = msg.get_body(preferencelist=("html",)).get_content()
    assert "VPN &lt;caída&gt;" in html
    assert "Critica" in html
