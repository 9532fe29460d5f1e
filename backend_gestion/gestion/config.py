"""Configuración de la API de S&P Gestión.

Todo se lee de variables de entorno (o de un archivo .env local) una sola vez,
a través de get_settings().
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv

DEFAULT_CORS_ORIGINS = [
    "http://127.0.0.1:5500",
    "http://127.0.0.1:3000",
    "http://localhost:5500",
    "http://localhost:3000",
    "https://proyectossyp.onrender.com",
]


def parse_origins(raw: str) -> List[str]:
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings:
    """Parámetros de la aplicación (BD, JWT, almacenamiento, correo)."""

    def __init__(self):
        load_dotenv()

        # ✅ URL de conexión (MySQL por defecto)
        self.database_url = os.getenv(
            "DATABASE_URL", "mysql+pymysql://root:@localhost:3306/syp_gestion"
        )

        # JWT
        self.jwt_secret = os.getenv("JWT_SECRET", "syp-jwt-fallback-secret-2025")
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
        self.access_token_expire_minutes = int(
            os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 8))  # 8 horas
        )

        # Cuentas canónicas
        self.admin_password = os.getenv("ADMIN_PASSWORD", "Admin2025*")

        # Adjuntos de tickets
        self.storage_dir = Path(os.getenv("STORAGE_DIR", "storage"))
        self.max_attachment_bytes = int(
            os.getenv("MAX_ATTACHMENT_BYTES", str(10 * 1024 * 1024))  # 10 MB
        )

        self.cors_origins = parse_origins(os.getenv("CORS_ORIGINS", ""))

        # Correo de alertas (sin SMTP_HOST se simula en el log)
        self.email_from = os.getenv("EMAIL_FROM", "onboarding@syp.local")
        self.email_to = os.getenv("EMAIL_TO", "automatizacion3@solutionsandpayroll.com")
        self.smtp_host = os.getenv("SMTP_HOST", "")
        self.smtp_port = int(os.getenv("SMTP_PORT", "587"))
        self.smtp_user = os.getenv("SMTP_USER", "")
        self.smtp_password = os.getenv("SMTP_PASSWORD", "")
        self.smtp_use_tls = os.getenv("SMTP_USE_TLS", "true").lower() in ("1", "true", "yes")

        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()
