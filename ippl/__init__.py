"""
Backend del Instituto (IPPL).

Estructura:
- config.py        : configuración desde variables de entorno (.env)
- db.py            : engine y sesiones SQLAlchemy
- models.py        : modelos ORM y enums del dominio
- scheduling.py    : intervalos, solapamiento y turnos libres
- *_service.py     : lógica de dominio (pacientes, turnos, solicitudes, blog, finanzas...)
- routes/          : routers FastAPI por recurso
- api_main.py      : aplicación FastAPI
- seed.py          : usuarios iniciales
- cli.py           : operaciones administrativas por consola
- client.py        : cliente HTTP usado por el panel Streamlit
"""
