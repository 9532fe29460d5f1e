"""Adaptador de rol para clientes de la API.

Uso típico en cada página/vista:

    adapter = RoleAdapter("http://localhost:8000/api", page="procesos")
    try:
        role = adapter.bootstrap()
    except RedirectRequired as redirect:
        ...  # navegar a redirect.target sin renderizar nada más

Cómo funciona el token:
  - login() guarda el token devuelto por el servidor en el TokenStore
  - cada request de auth_request() envía Authorization: Bearer <token>
  - logout() avisa al servidor y borra el token local
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional
from urllib.parse import quote

import requests

log = logging.getLogger("gestion.client")

ROLE_ADMIN = "admin"
ROLE_DEFAULT = "default"

# Páginas que redirigen si el rol no es admin
ADMIN_ONLY_PAGES = frozenset({"procesos", "ahorros"})
HOME_PAGE = "index.html"
LOGIN_PAGE = "login.html"


class RedirectRequired(Exception):
    """La vista actual no debe renderizarse; hay que navegar a `target`."""

    def __init__(self, target: str):
        super().__init__(target)
        self.target = target


class TokenStore:
    """Guarda el token entre requests; con `path` persiste en disco."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._token = None
        if self.path and self.path.exists():
            try:
                self._token = json.loads(self.path.read_text(encoding="utf-8")).get("token")
            except (OSError, ValueError, AttributeError):
                log.warning("No se pudo leer el token guardado en %s", self.path)

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str):
        self._token = token
        if self.path:
            self.path.write_text(json.dumps({"token": token}), encoding="utf-8")

    def clear(self):
        self._token = None
        if self.path and self.path.exists():
            self.path.unlink()


@dataclass
class NavItem:
    label: str
    href: str
    admin_only: bool = False


@dataclass
class SessionControl:
    label: str
    icon: str
    action: Callable[[], str]


class RoleAdapter:
    def __init__(
        self,
        api_url: str,
        page: str = "index",
        store: Optional[TokenStore] = None,
        http=None,
        current_path: str = "/",
    ):
        self.api_url = api_url.rstrip("/")
        self.page = page
        self.store = store or TokenStore()
        self.http = http or requests.Session()
        self.current_path = current_path
        self.role = ROLE_DEFAULT
        self.username = None
        self._listeners: List[Callable[[str, Optional[str]], None]] = []

    # ── Estado expuesto ─────────────────────────────────────────────────────
    @property
    def token(self) -> Optional[str]:
        return self.store.get()

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def on_role_resolved(self, callback: Callable[[str, Optional[str]], None]):
        self._listeners.append(callback)
        return callback

    # ── Requests ────────────────────────────────────────────────────────────
    def _auth_headers(self, headers: Optional[dict] = None) -> dict:
        merged = dict(headers or {})
        token = self.store.get()
        if token:
            merged["Authorization"] = f"Bearer {token}"
        return merged

    def auth_request(self, method: str, path: str, **kwargs):
        """Request a la API con el header Bearer agregado si hay token."""
        kwargs["headers"] = self._auth_headers(kwargs.get("headers"))
        return self.http.request(method, f"{self.api_url}{path}", **kwargs)

    def resolve_role(self) -> str:
        """Consulta /auth/me; cualquier fallo de red o de formato es 'default'."""
        role, username = ROLE_DEFAULT, None
        try:
            res = self.http.get(f"{self.api_url}/auth/me", headers=self._auth_headers())
            data = res.json()
            role = data.get("role") or ROLE_DEFAULT
            username = data.get("username")
        except (requests.RequestException, ValueError, AttributeError) as exc:
            log.warning("No se pudo verificar el token, asumiendo default: %s", exc)
        if role not in (ROLE_ADMIN, ROLE_DEFAULT):
            role = ROLE_DEFAULT
        self.role, self.username = role, username
        return role

    def bootstrap(self) -> str:
        """Resuelve el rol y protege la página antes de renderizar.

        Lanza RedirectRequired si la página es solo-admin y el rol no lo es;
        en ese caso no se notifica a los listeners.
        """
        role = self.resolve_role()
        if self.page in ADMIN_ONLY_PAGES and role != ROLE_ADMIN:
            raise RedirectRequired(HOME_PAGE)
        for callback in self._listeners:
            callback(role, self.token)
        return role

    # ── Sesión ──────────────────────────────────────────────────────────────
    def login(self, username: str, password: str) -> str:
        res = self.http.post(
            f"{self.api_url}/auth/login", json={"username": username, "password": password}
        )
        data = res.json()
        if res.status_code != 200:
            raise PermissionError(data.get("detail") or "Credenciales incorrectas.")
        self.store.set(data["token"])
        self.role, self.username = data["role"], data["username"]
        return self.role

    def logout(self) -> str:
        try:
            self.http.post(f"{self.api_url}/auth/logout", headers=self._auth_headers())
        except requests.RequestException as exc:
            # el token local se borra igual
            log.warning("No se pudo avisar el logout al servidor: %s", exc)
        self.store.clear()
        self.role, self.username = ROLE_DEFAULT, None
        return HOME_PAGE

    # ── Adaptación de la UI ─────────────────────────────────────────────────
    def visible_nav(self, items: Iterable[NavItem]) -> List[NavItem]:
        if self.is_admin:
            return list(items)
        return [item for item in items if not item.admin_only]

    def role_badge(self) -> str:
        return "Admin" if self.is_admin else "Invitado"

    def login_url(self) -> str:
        return f"{LOGIN_PAGE}?from={quote(self.current_path, safe='')}"

    def session_control(self) -> SessionControl:
        if self.is_admin:
            return SessionControl(label="Cerrar Sesión", icon="logout", action=self.logout)
        return SessionControl(label="Iniciar Sesión", icon="manage_accounts", action=self.login_url)
