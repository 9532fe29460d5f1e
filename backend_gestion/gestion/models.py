from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base

ROLE_ADMIN = "admin"
ROLE_DEFAULT = "default"
ROLES = (ROLE_ADMIN, ROLE_DEFAULT)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    role = Column(String(20), nullable=False, default=ROLE_DEFAULT)  # admin | default

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    area = Column(Text, nullable=False)
    encargado = Column(Text, nullable=False, default="")
    leader = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    status = Column(String(50), nullable=False, default="En Progreso")
    # Cacheado: progreso del avance más reciente (fecha desc, id desc) o 0
    progress = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    advances = relationship(
        "Advance",
        back_populates="project",
        cascade="all, delete-orphan",
    )
    saving = relationship(
        "Saving",
        back_populates="project",
        uselist=False,
        cascade="all, delete-orphan",
    )


class Advance(Base):
    __tablename__ = "advances"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False)
    progress = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    project = relationship("Project", back_populates="advances")


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False)
    subject = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    priority = Column(String(20), nullable=False, default="Media")  # Baja, Media, Alta, Critica
    attachment = Column(Text, nullable=True)  # URI pública del adjunto
    status = Column(String(30), nullable=False, default="Abierto")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Saving(Base):
    __tablename__ = "savings"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    amount = Column(Float, nullable=False)
    status = Column(String(30), nullable=False, default="Proyectado")
    date = Column(Date, nullable=False)
    costo_mensual = Column(Float, nullable=False, default=0)
    costo_hora = Column(Float, nullable=False, default=0)
    tiempo_empleado_antes = Column(Float, nullable=False, default=0)
    tiempo_empleado_actual = Column(Float, nullable=False, default=0)
    tiempo_gestion_antes = Column(Float, nullable=False, default=0)
    tiempo_gestion_antes_tipo = Column(String(20), nullable=False, default="Mensual")
    tiempo_gestion_actual = Column(Float, nullable=False, default=0)
    tiempo_gestion_actual_tipo = Column(String(20), nullable=False, default="Mensual")
    total_antes = Column(Float, nullable=False, default=0)
    total_actual = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    project = relationship("Project", back_populates="saving")
