import datetime as dt
from typing import Any, List, Optional

from pydantic import BaseModel
from pydantic.config import ConfigDict


# ===== AUTH =====
class LoginPayload(BaseModel):
    # Opcionales a propósito: si faltan se responde 400, no 422
    username: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    role: str
    username: str


class MessageOut(BaseModel):
    message: str


# ===== PROYECTOS =====
class ProjectCreate(BaseModel):
    area: Optional[str] = None
    encargado: Optional[str] = None
    leader: Optional[str] = None
    name: Optional[str] = None
    status: str = "En Progreso"


class ProjectUpdate(BaseModel):
    """Actualización parcial: lo que no llega (o llega null) se conserva."""
    area: Optional[str] = None
    encargado: Optional[str] = None
    leader: Optional[str] = None
    name: Optional[str] = None
    status: Optional[str] = None


class ProjectOut(BaseModel):
    id: int
    area: str
    encargado: str
    leader: str
    name: str
    status: str
    progress: int
    created_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProjectListItem(ProjectOut):
    savings_amount: Optional[float] = None
    savings_status: Optional[str] = None


# ===== AVANCES =====
class AdvanceCreate(BaseModel):
    description: Optional[str] = None
    date: Optional[dt.date] = None
    # Any: valores no numéricos se normalizan a 0, no se rechazan
    progress: Any = 0


class AdvanceOut(BaseModel):
    id: int
    project_id: int
    description: str
    date: dt.date
    progress: int
    created_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ===== TICKETS =====
class TicketCreate(BaseModel):
    date: Optional[dt.date] = None
    subject: Optional[str] = None
    description: Optional[str] = None
    priority: str = "Media"


class TicketUpdate(BaseModel):
    date: Optional[dt.date] = None
    subject: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None


class TicketOut(BaseModel):
    id: int
    date: dt.date
    subject: str
    description: str
    priority: str
    attachment: Optional[str] = None
    status: str
    created_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ===== AHORROS =====
class SavingCreate(BaseModel):
    project_id: Optional[int] = None
    amount: Optional[float] = None
    status: str = "Proyectado"
    date: Optional[dt.date] = None
    costo_mensual: float = 0
    costo_hora: float = 0
    tiempo_empleado_antes: float = 0
    tiempo_empleado_actual: float = 0
    tiempo_gestion_antes: float = 0
    tiempo_gestion_antes_tipo: str = "Mensual"
    tiempo_gestion_actual: float = 0
    tiempo_gestion_actual_tipo: str = "Mensual"
    total_antes: float = 0
    total_actual: float = 0


class SavingUpdate(BaseModel):
    amount: Optional[float] = None
    status: Optional[str] = None
    date: Optional[dt.date] = None
    costo_mensual: Optional[float] = None
    costo_hora: Optional[float] = None
    tiempo_empleado_antes: Optional[float] = None
    tiempo_empleado_actual: Optional[float] = None
    tiempo_gestion_antes: Optional[float] = None
    tiempo_gestion_antes_tipo: Optional[str] = None
    tiempo_gestion_actual: Optional[float] = None
    tiempo_gestion_actual_tipo: Optional[str] = None
    total_antes: Optional[float] = None
    total_actual: Optional[float] = None


class SavingOut(BaseModel):
    id: int
    project_id: int
    amount: float
    status: str
    date: dt.date
    costo_mensual: float
    costo_hora: float
    tiempo_empleado_antes: float
    tiempo_empleado_actual: float
    tiempo_gestion_antes: float
    tiempo_gestion_antes_tipo: str
    tiempo_gestion_actual: float
    tiempo_gestion_actual_tipo: str
    total_antes: float
    total_actual: float
    created_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SavingListItem(SavingOut):
    project_name: str
    project_area: str
    project_encargado: str


# ===== DASHBOARD =====
class RecentProject(ProjectOut):
    savings_amount: Optional[float] = None


class DashboardOut(BaseModel):
    totalProyectos: int
    ticketsAbiertos: int
    ticketsCriticos: int
    totalAhorros: float
    recentProjects: List[RecentProject]
