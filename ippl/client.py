"""
Cliente HTTP de la API para el panel Streamlit y scripts.

Adjunta el bearer token, convierte un 401 en PermissionError (token inválido,
vencido o backend reiniciado) y el resto de errores en ApiError con el
"detail" que devuelve la API.
"""
from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any

import requests
from jose import JWTError, jwt

API_BASE = os.getenv("API_BASE", "http://127.0.0.1:8000")
DEFAULT_TIMEOUT = 10


class ApiError(Exception):
    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


# JWT helpers (solo para la UI, sin verificar la firma)

def jwt_payload(token: str) -> dict:
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return {}


def jwt_is_expired(token: str, margin_seconds: int = 5) -> bool:
    exp = jwt_payload(token).get("exp")
    try:
        exp_int = int(exp)
    except (TypeError, ValueError):
        return False

    now = int(datetime.now(tz=timezone.utc).timestamp())
    return now >= (exp_int - margin_seconds)


def jwt_display_name(token: str) -> str:
    p = jwt_payload(token)
    return str(p.get("name") or p.get("email") or p.get("sub") or "usuario")


def jwt_role(token: str) -> str | None:
    return jwt_payload(token).get("role")


class IpplClient:
    def __init__(self, base_url: str = API_BASE, token: str | None = None, session: Any = None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        # requests.Session o cualquier objeto con la misma interfaz (p.ej. TestClient)
        self.session = session if session is not None else requests.Session()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        r = self.session.request(
            method,
            f"{self.base_url}{path}",
            headers=self._headers(),
            timeout=DEFAULT_TIMEOUT,
            **kwargs,
        )

        if r.status_code == 401:
            raise PermissionError("401 Unauthorized (token inválido/vencido o backend reiniciado).")
        if r.status_code >= 400:
            try:
                detail = r.json().get("detail", r.text)
            except ValueError:
                detail = r.text
            raise ApiError(r.status_code, str(detail))
        if r.status_code == 204 or not r.content:
            return None
        return r.json()

    def get(self, path: str, params: dict | None = None) -> Any:
        return self._request("GET", path, params=params)

    def post(self, path: str, payload: dict | None = None) -> Any:
        return self._request("POST", path, json=payload or {})

    def put(self, path: str, payload: dict | None = None) -> Any:
        return self._request("PUT", path, json=payload or {})

    def delete(self, path: str) -> Any:
        return self._request("DELETE", path)

    def login(self, username: str, password: str) -> dict:
        data = self.post("/api/auth/login", {"username": username, "password": password})
        self.token = data["token"]
        return data

    @property
    def token_expired(self) -> bool:
        return not self.token or jwt_is_expired(self.token)
