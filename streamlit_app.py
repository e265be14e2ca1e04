from __future__ import annotations

from datetime import date

import requests
import streamlit as st

from ippl.client import API_BASE, ApiError, IpplClient, jwt_display_name, jwt_is_expired, jwt_role

st.set_page_config(page_title="IPPL - Panel", layout="wide")


def client() -> IpplClient:
    return IpplClient(API_BASE, token=st.session_state.get("token"))


def is_logged_in() -> bool:
    token = st.session_state.get("token")
    return bool(token) and isinstance(token, str) and len(token) > 0


def do_logout() -> None:
    st.session_state.pop("token", None)
    st.session_state.pop("auth_error", None)
    st.rerun()


def require_auth(*roles: str) -> IpplClient | None:
    token = st.session_state.get("token")
    if not token:
        st.warning("Sección reservada. Inicia sesión desde la barra lateral.")
        return None

    if jwt_is_expired(token):
        st.error("Sesión vencida. Cierra sesión desde la barra lateral y vuelve a ingresar.")
        return None

    if roles and jwt_role(token) not in roles:
        st.info("Tu rol no tiene acceso a esta sección.")
        return None

    return client()


def session_lost(e: PermissionError) -> None:
    st.session_state["auth_error"] = str(e)
    st.error("Sesión no válida. Cierra sesión y vuelve a ingresar.")



# Sidebar login

with st.sidebar:
    st.header("Acceso")

    if not is_logged_in():
        u = st.text_input("Usuario o email", key="login_user")
        p = st.text_input("Contraseña", type="password", key="login_pass")

        if st.button("Ingresar", key="login_btn"):
            try:
                data = IpplClient(API_BASE).login(u.strip().lower(), p)
                st.session_state["token"] = data["token"]
                st.session_state.pop("auth_error", None)
                st.success("Sesión iniciada.")
                st.rerun()
            except PermissionError:
                st.error("Credenciales inválidas.")
            except (ApiError, requests.RequestException) as e:
                st.error(str(e))
    else:
        # datos del token, sin llamar a /api/auth/me
        token = st.session_state["token"]
        st.write(f"Usuario: **{jwt_display_name(token)}** ({jwt_role(token)})")

        if st.session_state.get("auth_error"):
            st.error(st.session_state["auth_error"])

        if st.button("Cerrar sesión", key="logout_btn"):
            do_logout()

    st.divider()
    st.caption(f"API: {API_BASE}")



# UI

st.title("IPPL - Panel de administración")

tab1, tab2, tab3, tab4, tab5 = st.tabs(["Pacientes", "Citas", "Solicitudes", "Mensajes", "Finanzas"])


@st.cache_data(ttl=10)
def load_professionals() -> list[dict]:
    return IpplClient(API_BASE).get("/api/professionals")["professionals"]  # pública



# TAB 1 - Pacientes

with tab1:
    st.subheader("Pacientes")

    api = require_auth("admin", "professional", "financial")
    if api:
        if jwt_role(api.token) == "admin":
            with st.expander("Nuevo paciente"):
                name = st.text_input("Nombre", key="pat_name")
                description = st.text_area("Motivo de consulta (opcional)", key="pat_desc")
                c1, c2 = st.columns(2)
                email = c1.text_input("Email (opcional)", key="pat_email")
                phone = c2.text_input("Teléfono (opcional)", key="pat_phone")

                if st.button("Crear paciente", key="pat_submit"):
                    if not name.strip():
                        st.error("El nombre es obligatorio.")
                    else:
                        try:
                            res = api.post(
                                "/api/patients",
                                {
                                    "name": name.strip(),
                                    "description": description.strip() or None,
                                    "email": email.strip() or None,
                                    "phone": phone.strip() or None,
                                },
                            )
                            st.success(f"Paciente creado: {res['id']}")
                        except PermissionError as e:
                            session_lost(e)
                        except ApiError as e:
                            st.error(e.detail)

        try:
            patients = api.get("/api/patients")["patients"]
            if not patients:
                st.info("No hay pacientes cargados.")
            else:
                st.dataframe(
                    [
                        {
                            "Nombre": p["name"],
                            "Estado": p["status"],
                            "Profesional": p["professionalName"] or "-",
                            "Frecuencia": p["sessionFrequency"] or "-",
                            "Email": p["email"] or "-",
                        }
                        for p in patients
                    ],
                    use_container_width=True,
                )
        except PermissionError as e:
            session_lost(e)
        except (ApiError, requests.RequestException) as e:
            st.error(f"Error cargando pacientes: {e}")



# TAB 2 - Citas

with tab2:
    st.subheader("Agenda y reserva de turnos")

    api = require_auth()
    if api:
        try:
            professionals = load_professionals()
            patients = api.get("/api/patients")["patients"] if jwt_role(api.token) != "content_manager" else []
        except PermissionError as e:
            session_lost(e)
            professionals, patients = [], []
        except (ApiError, requests.RequestException) as e:
            st.error(f"API no disponible: {e}")
            professionals, patients = [], []

        if professionals:
            colA, colB = st.columns(2)
            with colA:
                pro = st.selectbox("Profesional", options=professionals, format_func=lambda u: u["name"], key="apt_pro")
                day = st.date_input("Fecha", value=date.today(), key="apt_day")
            with colB:
                try:
                    slots = api.get(f"/api/appointments/slots/{pro['id']}", params={"date": day.isoformat()})["slots"]
                except (ApiError, requests.RequestException) as e:
                    st.error(str(e))
                    slots = []
                st.write("Horarios libres: " + (", ".join(slots) if slots else "ninguno"))

            if patients and slots:
                patient = st.selectbox("Paciente", options=patients, format_func=lambda p: p["name"], key="apt_patient")
                start = st.selectbox("Hora", options=slots, key="apt_start")
                cost = st.number_input("Costo de la sesión", min_value=0.0, step=500.0, key="apt_cost")
                notes = st.text_area("Notas (opcional)", key="apt_notes")

                if st.button("Agendar", key="apt_submit"):
                    try:
                        res = api.post(
                            "/api/appointments",
                            {
                                "patientId": patient["id"],
                                "professionalId": pro["id"],
                                "date": day.isoformat(),
                                "startTime": start,
                                "sessionCost": cost or None,
                                "notes": notes or None,
                            },
                        )
                        st.success(f"Cita agendada {res['date']} {res['startTime']}-{res['endTime']}")
                    except PermissionError as e:
                        session_lost(e)
                    except ApiError as e:
                        st.error(e.detail)

            st.divider()
            try:
                items = api.get(f"/api/appointments/professional/{pro['id']}")["appointments"]
                items = [a for a in items if a["date"] == day.isoformat()]
                if not items:
                    st.info("Sin citas para este día.")
                for a in items:
                    st.write(f"- **{a['startTime']} - {a['endTime']}** | {a['patientName']} | {a['type']} | {a['status']}")
            except PermissionError as e:
                session_lost(e)
            except (ApiError, requests.RequestException) as e:
                st.error(f"Error agenda: {e}")



# TAB 3 - Solicitudes (admin)

with tab3:
    st.subheader("Solicitudes pendientes")

    api = require_auth("admin")
    if api:
        try:
            pending = api.get("/api/status-requests/pending")["requests"]
            if not pending:
                st.info("No hay solicitudes pendientes.")
            for r in pending:
                if r["type"] == "frequency_change":
                    change = f"frecuencia {r['currentFrequency'] or '-'} → {r['requestedFrequency']}"
                else:
                    change = f"estado {r['currentStatus']} → {r['requestedStatus']}"
                with st.container(border=True):
                    st.write(f"**{r['patientName']}** ({r['professionalName']}): {change}")
                    st.caption(r["reason"] or "Sin motivo")
                    response = st.text_input("Respuesta", key=f"req_resp_{r['id']}")
                    c1, c2 = st.columns(2)
                    if c1.button("Aprobar", key=f"req_ok_{r['id']}"):
                        api.post(f"/api/status-requests/{r['id']}/approve", {"adminResponse": response or None})
                        st.rerun()
                    if c2.button("Rechazar", key=f"req_ko_{r['id']}"):
                        try:
                            api.post(f"/api/status-requests/{r['id']}/reject", {"adminResponse": response})
                            st.rerun()
                        except ApiError as e:
                            st.error(e.detail)
        except PermissionError as e:
            session_lost(e)
        except (ApiError, requests.RequestException) as e:
            st.error(f"Error solicitudes: {e}")



# TAB 4 - Mensajes de contacto

with tab4:
    st.subheader("Mensajes del formulario de contacto")

    api = require_auth("admin", "content_manager")
    if api:
        try:
            messages = api.get("/api/messages")
            if not messages:
                st.info("No hay mensajes.")
            for m in messages:
                icon = "" if m["read"] else "🆕 "
                with st.expander(f"{icon}{m['firstName']} {m['lastName'] or ''} <{m['email']}>"):
                    st.write(m["message"])
                    st.caption(m["createdAt"])
                    if not m["read"] and st.button("Marcar como leído", key=f"msg_read_{m['id']}"):
                        api.put(f"/api/messages/{m['id']}/read")
                        st.rerun()
        except PermissionError as e:
            session_lost(e)
        except (ApiError, requests.RequestException) as e:
            st.error(f"Error mensajes: {e}")



# TAB 5 - Finanzas

with tab5:
    st.subheader("Saldos y comisiones")

    api = require_auth("admin", "financial")
    if api:
        try:
            summary = api.get("/api/finance/summary")
            totals = summary["totals"]
            c1, c2, c3, c4 = st.columns(4)
            c1.metric("Cobrado", f"$ {totals['balanceTotal']:,.2f}")
            c2.metric("Comisión adeudada", f"$ {totals['commissionDue']:,.2f}")
            c3.metric("Comisión abonada", f"$ {totals['commissionPaid']:,.2f}")
            c4.metric("Deuda de pacientes", f"$ {totals['patientDebt']:,.2f}")

            st.dataframe(summary["professionals"], use_container_width=True)

            with st.expander("Registrar abono de comisión"):
                options = summary["professionals"]
                if options:
                    pro = st.selectbox("Profesional", options=options, format_func=lambda u: u["name"], key="fin_pro")
                    amount = st.number_input("Monto", min_value=0.0, step=1000.0, key="fin_amount")
                    if st.button("Registrar abono", key="fin_submit"):
                        try:
                            api.post(f"/api/users/{pro['id']}/abonar-comision", {"amount": amount})
                            st.success("Abono registrado.")
                            st.rerun()
                        except ApiError as e:
                            st.error(e.detail)
        except PermissionError as e:
            session_lost(e)
        except (ApiError, requests.RequestException) as e:
            st.error(f"Error finanzas: {e}")
