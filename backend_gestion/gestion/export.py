"""Exporta los datos existentes como sentencias INSERT.

    python -m gestion.export [archivo_salida]
"""

import datetime as dt
import logging
import sys
from pathlib import Path

from sqlalchemy.orm import Session

from .database import SessionLocal
from .models import Advance, Project, Saving, Ticket

log = logging.getLogger("gestion.export")

EXPORT_MODELS = (Project, Advance, Ticket, Saving)


def sql_literal(value) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (dt.date, dt.datetime)):
        value = value.isoformat()
    return "'" + str(value).replace("'", "''") + "'"


def export_inserts(db: Session) -> str:
    lines = []
    for model in EXPORT_MODELS:
        table = model.__table__
        columns = [c.name for c in table.columns]
        for row in db.query(model).order_by(model.id).all():
            values = [sql_literal(getattr(row, name)) for name in columns]
            lines.append(
                f"INSERT INTO {table.name} ({', '.join(columns)}) VALUES ({', '.join(values)});"
            )
    return "".join(line + "\n" for line in lines)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    output = Path(argv[0]) if argv else Path("export.sql")
    db = SessionLocal()
    try:
        output.write_text(export_inserts(db), encoding="utf-8")
    finally:
        db.close()
    print(f"Exportación completada. Revisa {output}")


if __name__ == "__main__":
    main()
