"""Progreso de proyecto derivado de sus avances.

Project.progress es un valor cacheado: siempre debe coincidir con el progreso
del avance más reciente (fecha desc, id desc) o 0 si no quedan avances.
"""

import math
import re
from typing import Any

from sqlalchemy.orm import Session

from .models import Advance, Project

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def clamp_progress(value: Any) -> int:
    """Normaliza un progreso de entrada a un entero en [0, 100].

    Se parsea el entero inicial ("40abc" -> 40, "12.9" -> 12); lo que no sea
    numérico cuenta como 0. Nunca se rechaza la entrada.
    """
    if isinstance(value, bool) or value is None:
        number = 0
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float):
        number = int(value) if math.isfinite(value) else 0
    else:
        match = _LEADING_INT.match(str(value))
        number = int(match.group(1)) if match else 0
    return min(max(number, 0), 100)


def lock_project(db: Session, project_id: int):
    # FOR UPDATE serializa las escrituras concurrentes sobre el mismo proyecto
    return (
        db.query(Project)
        .filter(Project.id == project_id)
        .with_for_update()
        .first()
    )


def latest_progress(db: Session, project_id: int) -> int:
    latest = (
        db.query(Advance.progress)
        .filter(Advance.project_id == project_id)
        .order_by(Advance.date.desc(), Advance.id.desc())
        .first()
    )
    return latest[0] if latest else 0


def refresh_project_progress(db: Session, project: Project) -> int:
    """Recalcula y asigna el progreso del proyecto dentro de la transacción actual."""
    db.flush()
    project.progress = latest_progress(db, project.id)
    return project.progress
