import pytest

from gestion.models import Project
from gestion.progress import clamp_progress


@pytest.mark.parametrize(
    "raw,expected",
    [
        (150, 100),
        (-5, 0),
        ("abc", 0),
        (None, 0),
        ("", 0),
        (40, 40),
        ("40", 40),
        ("40abc", 40),
        ("12.9", 12),
        (55.8, 55),
        (float("nan"), 0),
        (True, 0),
        ([1, 2], 0),
    ],
)
def test_clamp_progress(raw, expected):
    assert clamp_progress(raw) == expected


def add_advance(client, headers, project_id, date, progress):
    res = client.post(
        f"/api/proyectos/{project_id}/avances",
        json={"description": f"avance {date}", "date": date, "progress": progress},
        headers=headers,
    )
    assert res.status_code == 201, res.text
    return res.json()


def project_progress(client, headers, project_id):
    return client.get(f"/api/proyectos/{project_id}", headers=headers).json()["progress"]


def test_single_advance_lifecycle(client, admin_headers, project):
    pid = project["id"]
    assert project["progress"] == 0

    advance = add_advance(client, admin_headers, pid, "2025-02-01", 40)
    assert project_progress(client, admin_headers, pid) == 40

    res = client.delete(f"/api/avances/{advance['id']}", headers=admin_headers)
    assert res.status_code == 200
    assert project_progress(client, admin_headers, pid) == 0


def test_advance_progress_is_clamped(client, admin_headers, project):
    advance = add_advance(client, admin_headers, project["id"], "2025-02-01", 150)
    assert advance["progress"] == 100
    assert project_progress(client, admin_headers, project["id"]) == 100

    advance = add_advance(client, admin_headers, project["id"], "2025-02-02", "no numérico")
    assert advance["progress"] == 0
    assert project_progress(client, admin_headers, project["id"]) == 0


def test_delete_latest_falls_back_to_previous(client, admin_headers, project):
    pid = project["id"]
    add_advance(client, admin_headers, pid, "2025-01-01", 10)
    add_advance(client, admin_headers, pid, "2025-01-05", 30)
    latest = add_advance(client, admin_headers, pid, "2025-01-10", 60)

    client.delete(f"/api/avances/{latest['id']}", headers=admin_headers)
    assert project_progress(client, admin_headers, pid) == 30


def test_same_date_ties_break_by_insertion_order(client, admin_headers, project):
    pid = project["id"]
    add_advance(client, admin_headers, pid, "2025-01-01", 10)
    second = add_advance(client, admin_headers, pid, "2025-01-01", 25)
    assert project_progress(client, admin_headers, pid) == 25

    client.delete(f"/api/avances/{second['id']}", headers=admin_headers)
    assert project_progress(client, admin_headers, pid) == 10


def test_backdated_advance_does_not_override_latest(client, admin_headers, project):
    pid = project["id"]
    add_advance(client, admin_headers, pid, "2025-03-01", 70)
    add_advance(client, admin_headers, pid, "2025-01-01", 20)
    assert project_progress(client, admin_headers, pid) == 70


def test_progress_matches_derivation_after_mixed_sequence(client, db, admin_headers, project):
    pid = project["id"]
    created = [
        add_advance(client, admin_headers, pid, date, pct)
        for date, pct in (
            ("2025-01-03", 30),
            ("2025-01-01", 5),
            ("2025-01-07", 80),
            ("2025-01-07", 75),
            ("2025-01-02", 15),
        )
    ]
    remaining = list(created)
    for advance in (created[3], created[0], created[2]):
        client.delete(f"/api/avances/{advance['id']}", headers=admin_headers)
        remaining.remove(advance)
        expected = max(remaining, key=lambda a: (a["date"], a["id"]))["progress"]
        assert project_progress(client, admin_headers, pid) == expected

    for advance in remaining:
        client.delete(f"/api/avances/{advance['id']}", headers=admin_headers)
    db.expire_all()
    assert db.get(Project, pid).progress == 0


def test_list_advances_newest_first(client, admin_headers, project):
    pid = project["id"]
    add_advance(client, admin_headers, pid, "2025-01-01", 10)
    add_advance(client, admin_headers, pid, "2025-01-09", 50)
    rows = client.get(f"/api/proyectos/{pid}/avances", headers=admin_headers).json()
    assert [r["progress"] for r in rows] == [50, 10]


def test_advance_requires_description_and_date(client, admin_headers, project):
    res = client.post(
        f"/api/proyectos/{project['id']}/avances",
        json={"progress": 10},
        headers=admin_headers,
    )
    assert res.status_code == 400


def test_advance_for_missing_project_is_404(client, admin_headers):
    res = client.post(
        "/api/proyectos/9999/avances",
        json={"description": "x", "date": "2025-01-01", "progress": 10},
        headers=admin_headers,
    )
    assert res.status_code == 404
    assert client.get("/api/proyectos/9999/avances", headers=admin_headers).status_code == 404


def test_delete_missing_advance_is_404(client, admin_headers):
    assert client.delete("/api/avances/9999", headers=admin_headers).status_code == 404
