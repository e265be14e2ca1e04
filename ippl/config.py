from __future__ import annotations

import os
import warnings
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Raíz del proyecto (carpeta que contiene el paquete ippl)
PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATABASE_URL = os.getenv("IPPL_DATABASE_URL", f"sqlite:///{PROJECT_ROOT / 'ippl.sqlite'}")

JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    warnings.warn("JWT_SECRET no configurado: se usa un secreto de desarrollo", RuntimeWarning, stacklevel=2)
    JWT_SECRET = "CHANGE_ME_DEV_SECRET"
JWT_ALG = "HS256"
# 24h
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "1440"))

BCRYPT_ROUNDS = int(os.getenv("IPPL_BCRYPT_ROUNDS", "12"))

UPLOAD_DIR = Path(os.getenv("IPPL_UPLOAD_DIR", str(PROJECT_ROOT / "uploads")))
AUDIO_DIR = UPLOAD_DIR / "audios"
POSTS_DIR = UPLOAD_DIR / "posts"
CAROUSEL_DIR = Path(os.getenv("IPPL_CAROUSEL_DIR", str(PROJECT_ROOT / "public" / "images" / "carousel")))
MAX_UPLOAD_BYTES = int(os.getenv("IPPL_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

CORS_ORIGINS = [o.strip() for o in os.getenv("IPPL_CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()]

LOG_LEVEL = os.getenv("IPPL_LOG_LEVEL", "INFO").upper()

# Contraseña de las cuentas demo creadas por seed
SEED_PASSWORD = os.getenv("IPPL_SEED_PASSWORD", "ippl1234")

# Horario de atención: turnos de 60 minutos entre 09:00 y 17:00
BUSINESS_START_HOUR = 9
BUSINESS_END_HOUR = 17
SLOT_MINUTES = 60
