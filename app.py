import logging
import os
from urllib.parse import urljoin, urlparse

from flask import (
    Flask,
    flash,
    g,
    jsonify,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from werkzeug.exceptions import HTTPException

import assignment
import calendar_events
import chat
import goals
import notifications
import passwords
import profiles
import verification
from auth import (
    admin_required,
    is_admin_email,
    login_required,
    start_session,
    user_type_required,
    wants_json,
)
from config import Config
from errors import AdvisoryError, NotFoundError, UpstreamError, ValidationError
from identity_client import IdentityToolkitClient, LocalIdentityProvider
from imgur_client import upload_image
from store import (
    USER_TYPE_ASESOR,
    USER_TYPE_CLIENTE,
    USER_TYPE_UNREGISTERED,
    AdvisoryStore,
    public_doc,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

config = Config()

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("asesoria")

app = Flask(
    __name__,
    template_folder=os.path.join(BASE_DIR, "templates"),
    static_folder=os.path.join(BASE_DIR, "static"),
)
app.config.update(config.as_dict())


def get_store() -> AdvisoryStore:
    """The data-access object bound to this app; built and bootstrapped on first use."""
    store = app.extensions.get("advisory_store")
    if store is None:
        store = AdvisoryStore.from_uri(app.config["MONGO_URI"], app.config["MONGO_DB_NAME"])
        store.ensure_indexes()
        app.extensions["advisory_store"] = store
    return store


def get_identity():
    identity = app.extensions.get("identity_provider")
    if identity is None:
        if app.config.get("FIREBASE_API_KEY"):
            identity = IdentityToolkitClient(app.config["FIREBASE_API_KEY"])
        else:
            logger.warning("FIREBASE_API_KEY not set, using local identity provider")
            identity = LocalIdentityProvider(get_store())
        app.extensions["identity_provider"] = identity
    return identity


def _payload():
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("El cuerpo de la solicitud debe ser un objeto JSON.")
        return data
    return request.form.to_dict()


def _is_safe_url(target: str) -> bool:
    if not target:
        return False
    ref_url = urlparse(request.host_url)
    test_url = urlparse(urljoin(request.host_url, target))
    return test_url.scheme in ("http", "https") and ref_url.netloc == test_url.netloc


def _flash_all(messages, category):
    for m in messages:
        flash(m, category)


def _home_for(user_type):
    if user_type == USER_TYPE_CLIENTE:
        return "/homecliente"
    if user_type == USER_TYPE_ASESOR:
        return "/homeasesor"
    return "/dashboard"


def _remember_user_type(store, uid, user_type):
    store.set_user_type(uid, user_type)
    session["userType"] = user_type


# ---------------------------
# ERRORS & REQUEST LOG
# ---------------------------

@app.errorhandler(AdvisoryError)
def handle_advisory_error(e):
    if wants_json():
        return jsonify({"success": False, "message": e.message}), e.status_code
    return render_template("error.html", message=e.message, status=e.status_code), e.status_code


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return e
    logger.exception("Unhandled error on %s %s (user=%s)", request.method, request.path, session.get("userId"))
    message = "Error interno del servidor. Inténtalo más tarde."
    if wants_json():
        return jsonify({"success": False, "message": message}), 500
    return render_template("error.html", message=message, status=500), 500


@app.before_request
def load_session_user():
    """Drop sessions whose user was deleted; keep userType in line with the stored record."""
    uid = session.get("userId")
    if not uid or request.path.startswith("/static/"):
        return None
    user = get_store().find_user(uid)
    if user is None:
        logger.warning("Session for deleted user %s cleared", uid)
        session.clear()
        flash("Tu sesión ya no es válida. Por favor, inicia sesión de nuevo.", "error")
        return None
    if user.get("userType") and session.get("userType") != user["userType"]:
        session["userType"] = user["userType"]
    return None


@app.after_request
def log_request(response):
    if not request.path.startswith("/static/"):
        logger.info("%s %s %s", request.method, request.path, response.status_code)
    return response


# ---------------------------
# LOGIN / REGISTER / LOGOUT
# ---------------------------

@app.route("/")
def welcome_page():
    if session.get("userId"):
        return redirect("/dashboard")
    return render_template("welcome.html")


@app.route("/login", methods=["GET"])
def login_page():
    return render_template("login.html", next=request.args.get("next", ""))


@app.route("/login", methods=["POST"])
def login_submit():
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("contrasena") or ""
    next_url = request.form.get("next") or request.args.get("next") or ""

    if not email or not password:
        flash("Por favor, introduce correo electrónico y contraseña.", "error")
        return redirect(url_for("login_page"))

    try:
        result = get_identity().sign_in(email, password)
    except UpstreamError as e:
        flash(e.message, "error")
        return redirect(url_for("login_page"))

    store = get_store()
    if not store.find_user(result.uid):
        store.create_user(result.uid, result.email)

    cliente = store.find_cliente(result.uid)
    asesor = store.find_asesor(result.uid)
    if cliente:
        user_type, name = USER_TYPE_CLIENTE, cliente.get("nombre")
    elif asesor:
        user_type, name = USER_TYPE_ASESOR, asesor.get("nombre")
    else:
        user_type, name = USER_TYPE_UNREGISTERED, None

    if store.find_user(result.uid).get("userType") != user_type:
        store.set_user_type(result.uid, user_type)
    start_session(result.uid, result.email, user_type, name)
    logger.info("User %s logged in as %s", result.uid, user_type)
    flash("¡Has iniciado sesión con éxito!", "success")

    if _is_safe_url(next_url):
        return redirect(next_url)
    return redirect("/dashboard")


@app.route("/registro", methods=["GET"])
def register_page():
    return render_template("registro.html", form_data={})


@app.route("/registro", methods=["POST"])
def register_submit():
    form = request.form.to_dict()
    nombre = (form.get("nombre") or "").strip()
    apellido = (form.get("apellido") or "").strip()
    email = (form.get("email") or "").strip().lower()
    password = form.get("contrasena") or ""
    form.pop("contrasena", None)
    confirm = form.pop("confirmar_contrasena", "")

    if not nombre or not email:
        flash("Nombre y correo electrónico son obligatorios.", "error")
        return render_template("registro.html", form_data=form), 400
    if password != confirm:
        flash("Las contraseñas no coinciden.", "error")
        return render_template("registro.html", form_data=form), 400

    try:
        result = get_identity().sign_up(email, password, f"{nombre} {apellido}".strip())
    except UpstreamError as e:
        flash(e.message, "error")
        return render_template("registro.html", form_data=form), 400

    store = get_store()
    if not store.find_user(result.uid):
        store.create_user(result.uid, result.email, display_name=f"{nombre} {apellido}".strip())

    start_session(result.uid, result.email, USER_TYPE_UNREGISTERED, nombre)
    logger.info("User %s registered", result.uid)
    flash("¡Registro exitoso! Por favor, completa tu perfil.", "success")
    return redirect("/dashboard")


@app.route("/logout", methods=["GET", "POST"])
def logout():
    session.clear()
    flash("Has cerrado sesión.", "success")
    if request.method == "POST":
        return jsonify({"success": True, "redirectTo": "/login"})
    return redirect(url_for("login_page"))


# ---------------------------
# PROFILE REGISTRATION & DASHBOARD
# ---------------------------

@app.route("/registro-perfil/<tipo>")
@login_required
def profile_registration_page(tipo):
    if tipo == USER_TYPE_CLIENTE:
        return render_template("registro_cliente.html")
    if tipo == USER_TYPE_ASESOR:
        return render_template("registro_asesor.html")
    flash("Tipo de usuario no válido.", "error")
    return redirect("/dashboard")


@app.route("/registro-perfil", methods=["POST"])
@login_required
def profile_registration_submit():
    uid = session["userId"]
    store = get_store()
    form = request.form.to_dict()
    tipo = form.pop("tipo_usuario", "")

    if store.find_cliente(uid) or store.find_asesor(uid):
        flash("Tu perfil ya está registrado.", "info")
        return redirect("/dashboard")

    try:
        values = profiles.register_profile(store, uid, session.get("userEmail"), tipo, form)
    except ValidationError as e:
        _flash_all(e.errors, "error")
        if tipo in (USER_TYPE_CLIENTE, USER_TYPE_ASESOR):
            return redirect(f"/registro-perfil/{tipo}")
        return redirect("/dashboard")

    session["userType"] = tipo
    session["userName"] = values.get("nombre")
    if tipo == USER_TYPE_ASESOR:
        flash("Tu perfil de asesor ha sido registrado. Espera la verificación.", "success")
    else:
        flash("Tu perfil de cliente ha sido registrado.", "success")
    return redirect(_home_for(tipo))


@app.route("/dashboard")
@login_required
def dashboard():
    uid = session["userId"]
    if is_admin_email(session.get("userEmail")):
        return redirect("/admin/verificaciones_pendientes")

    user_type = session.get("userType")
    if user_type in (USER_TYPE_CLIENTE, USER_TYPE_ASESOR):
        return redirect(_home_for(user_type))

    store = get_store()
    if store.find_cliente(uid):
        _remember_user_type(store, uid, USER_TYPE_CLIENTE)
        return redirect("/homecliente")
    if store.find_asesor(uid):
        _remember_user_type(store, uid, USER_TYPE_ASESOR)
        return redirect("/homeasesor")
    _remember_user_type(store, uid, USER_TYPE_UNREGISTERED)
    return render_template("seleccionar_tipo_usuario.html")


@app.route("/homecliente")
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def home_cliente():
    store = get_store()
    cliente = store.find_cliente(session["userId"])
    if not cliente:
        _remember_user_type(store, session["userId"], USER_TYPE_UNREGISTERED)
        flash("Tu perfil de cliente no se encontró. Por favor, completa tu registro.", "error")
        return redirect("/dashboard")

    asesor_card = None
    if cliente.get("asesorAsignado"):
        try:
            asesor_card = profiles.advisor_card(store, cliente["asesorAsignado"])
        except NotFoundError:
            logger.warning("Assigned asesor %s not found", cliente["asesorAsignado"])

    return render_template(
        "homecliente.html",
        user=public_doc(cliente),
        tiene_asesor_asignado=asesor_card is not None,
        asesor_asignado=asesor_card,
    )


@app.route("/homeasesor")
@login_required
@user_type_required(USER_TYPE_ASESOR)
def home_asesor():
    store = get_store()
    asesor = store.find_asesor(session["userId"])
    if not asesor:
        _remember_user_type(store, session["userId"], USER_TYPE_UNREGISTERED)
        flash("Tu perfil de asesor no se encontró. Por favor, completa tu registro.", "error")
        return redirect("/dashboard")

    user_role = "admin" if is_admin_email(session.get("userEmail")) else "asesor"
    return render_template(
        "homeasesor.html",
        user=public_doc(asesor),
        user_role=user_role,
        unread_notifications=notifications.unread_count(store, session["userId"]),
    )


# ---------------------------
# NOTIFICATIONS
# ---------------------------

@app.route("/api/asesor/notificaciones-resumen")
@login_required
@user_type_required(USER_TYPE_ASESOR)
def api_notification_summary():
    return jsonify(notifications.get_summary(get_store(), session["userId"]))


@app.route("/asesor/notificaciones")
@login_required
@user_type_required(USER_TYPE_ASESOR)
def notifications_page():
    items = notifications.list_notifications(get_store(), session["userId"])
    return render_template("notificaciones.html", notifications=items)


@app.route("/asesor/notificaciones/marcar-leida", methods=["POST"])
@login_required
@user_type_required(USER_TYPE_ASESOR)
def api_mark_notification_read():
    data = _payload()
    result = notifications.mark_read(get_store(), session["userId"], data.get("notificationId"))
    return jsonify(result)


# ---------------------------
# PROFILES
# ---------------------------

@app.route("/perfilcliente")
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def client_profile_page():
    cliente, nombre_asesor = profiles.client_profile(get_store(), session["userId"])
    return render_template("perfilcliente.html", cliente=cliente, nombre_asesor=nombre_asesor)


@app.route("/cliente/editar-info-personal", methods=["POST"])
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def api_edit_client_personal():
    cliente = profiles.update_client_personal(get_store(), session["userId"], _payload())
    session["userEmail"] = cliente.get("email", session.get("userEmail")).lower()
    session["userName"] = cliente.get("nombre")
    return jsonify({"success": True, "message": "Información personal actualizada con éxito.", "cliente": cliente})


@app.route("/cliente/editar-info-financiera", methods=["POST"])
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def api_edit_client_financial():
    cliente = profiles.update_client_financial(get_store(), session["userId"], _payload())
    return jsonify({"success": True, "message": "Información financiera actualizada con éxito.", "cliente": cliente})


@app.route("/perfilasesor")
@login_required
@user_type_required(USER_TYPE_ASESOR)
def advisor_profile_page():
    asesor = profiles.advisor_profile(get_store(), session["userId"])
    return render_template("perfilasesor.html", asesor=asesor)


@app.route("/asesor/editar-info-personal", methods=["POST"])
@login_required
@user_type_required(USER_TYPE_ASESOR)
def api_edit_advisor_personal():
    asesor = profiles.update_advisor_personal(get_store(), session["userId"], _payload())
    session["userEmail"] = asesor.get("email", session.get("userEmail")).lower()
    session["userName"] = asesor.get("nombre")
    return jsonify({"success": True, "message": "Perfil actualizado con éxito.", "asesor": asesor})


@app.route("/upload-profile-photo", methods=["POST"])
@login_required
def api_upload_profile_photo():
    uid = session["userId"]
    user_type = session.get("userType")
    file = request.files.get("profilePhoto")
    if not file or file.filename == "":
        return jsonify({"success": False, "message": "No se subió ningún archivo."}), 400
    if user_type not in (USER_TYPE_CLIENTE, USER_TYPE_ASESOR):
        return jsonify({"success": False, "message": "Tipo de usuario no reconocido para la subida de foto."}), 400

    image_url = upload_image(
        app.config.get("IMGUR_CLIENT_ID"),
        file.read(),
        file.mimetype,
        title=f"Foto de perfil de usuario {uid}",
    )
    profiles.set_profile_photo(get_store(), uid, user_type, image_url)
    return jsonify({
        "success": True,
        "message": "Foto de perfil subida y actualizada correctamente.",
        "imageUrl": image_url,
    })


@app.route("/api/asesor/<asesor_id>")
@login_required
def api_advisor_card(asesor_id):
    return jsonify(profiles.advisor_card(get_store(), asesor_id))


@app.route("/api/cliente/<cliente_id>")
@login_required
@user_type_required(USER_TYPE_ASESOR)
def api_client_card(cliente_id):
    return jsonify(profiles.client_card(get_store(), cliente_id))


@app.route("/clientes/<cliente_id>/perfil")
@login_required
@user_type_required(USER_TYPE_ASESOR)
def advisor_view_client_page(cliente_id):
    store = get_store()
    cliente = store.find_cliente(cliente_id)
    if not cliente:
        flash("El perfil del cliente no fue encontrado.", "error")
        return redirect("/clientes-asignados")
    return render_template("perfil_cliente.html", cliente=public_doc(cliente))


@app.route("/clientes-asignados")
@login_required
@user_type_required(USER_TYPE_ASESOR)
def assigned_clients_page():
    store = get_store()
    asesor = store.get_asesor(session["userId"])
    clientes = [public_doc(c) for c in store.find_clientes(asesor.get("clientesAsignados", []))]
    return render_template("clientes_asignados.html", clientes=clientes)


# ---------------------------
# PASSWORD CHANGE
# ---------------------------

def _password_change(form_url, success_url, template):
    if request.method == "GET":
        return render_template(template, form_action=form_url)

    form = request.form
    try:
        passwords.change_password(
            get_identity(),
            session.get("userEmail"),
            form.get("currentPassword"),
            form.get("newPassword"),
            form.get("confirmNewPassword"),
        )
    except ValidationError as e:
        _flash_all(e.errors, "error")
        return redirect(form_url)
    except UpstreamError as e:
        flash(e.message, "error")
        return redirect(form_url)

    flash("¡Contraseña actualizada con éxito!", "success")
    return redirect(success_url)


@app.route("/cambiar-password", methods=["GET", "POST"])
@login_required
@user_type_required(USER_TYPE_ASESOR)
def advisor_change_password():
    return _password_change("/cambiar-password", "/perfilasesor", "cambiar_password.html")


@app.route("/cliente/cambiar_password", methods=["GET", "POST"])
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def client_change_password():
    return _password_change("/cliente/cambiar_password", "/perfilcliente", "cambiar_password.html")


# ---------------------------
# VERIFICATION (advisor) & ADMIN REVIEW
# ---------------------------

@app.route("/asesor/verificar_identidad", methods=["GET"])
@login_required
@user_type_required(USER_TYPE_ASESOR)
def verification_page():
    asesor = get_store().get_asesor(session["userId"])
    return render_template(
        "verificar_identidad.html", form=verification.form_state(asesor), errors=[], sections=verification.SECTIONS
    )


@app.route("/asesor/verificar_identidad", methods=["POST"])
@login_required
@user_type_required(USER_TYPE_ASESOR)
def verification_submit():
    try:
        changed = verification.submit_verification(get_store(), session["userId"], request.form)
    except verification.VerificationFormError as e:
        return render_template(
            "verificar_identidad.html", form=e.form_state, errors=e.errors, sections=verification.SECTIONS
        ), 400

    if changed:
        flash("Tus datos de verificación fueron enviados y están pendientes de revisión.", "success")
    else:
        flash("No se detectaron cambios en tus datos de verificación.", "info")
    return redirect(url_for("verification_page"))


@app.route("/admin/verificaciones_pendientes")
@login_required
@admin_required
def admin_pending_verifications():
    asesores = []
    for a in get_store().list_asesores_with_pending_verification():
        doc = public_doc(a)
        doc["pendientes"] = verification.pending_sections(a)
        asesores.append(doc)
    return render_template("verificaciones_pendientes.html", asesores_pendientes=asesores, user_role=g.user_role)


@app.route("/admin/verificar-documento", methods=["POST"])
@login_required
@admin_required
def admin_review_document():
    data = _payload()
    asesor_id, kind, action = data.get("asesorId"), data.get("type"), data.get("action")
    if not asesor_id or not kind or not action:
        return jsonify({"success": False, "message": "Datos incompletos para la verificación."}), 400
    new_status = verification.review_section(get_store(), asesor_id, kind, action)
    return jsonify({"success": True, "message": f"Verificación de {kind} actualizada a {new_status}."})


@app.route("/admin/usuarios/<user_id>/eliminar", methods=["POST"])
@login_required
@admin_required
def admin_delete_user(user_id):
    get_store().delete_user(user_id)
    return jsonify({"success": True, "message": "Usuario eliminado."})


# ---------------------------
# ADVISOR ASSIGNMENT
# ---------------------------

@app.route("/contacto-asesor")
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def available_advisors_page():
    asesores = [public_doc(a) for a in assignment.available_advisors(get_store())]
    return render_template("asesores_disponibles.html", asesores=asesores)


@app.route("/cliente/asignar-asesor", methods=["POST"])
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def api_assign_advisor():
    data = _payload()
    try:
        redirect_to = assignment.assign(get_store(), session["userId"], data.get("asesorId"))
    except AdvisoryError as e:
        return jsonify({
            "success": False,
            "message": e.message,
            "redirectTo": assignment.BROWSE_REDIRECT,
        }), e.status_code
    except Exception:
        logger.exception("Error assigning asesor to %s", session["userId"])
        return jsonify({
            "success": False,
            "message": "Error interno del servidor al asignar el asesor.",
            "redirectTo": assignment.BROWSE_REDIRECT,
        }), 500

    return jsonify({
        "success": True,
        "message": "Asesor asignado correctamente. Redirigiendo al chat...",
        "redirectTo": redirect_to,
    })


@app.route("/api/cliente/despedir-asesor", methods=["POST"])
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def api_release_advisor():
    assignment.release(get_store(), session["userId"])
    return jsonify({"success": True, "message": "Has desvinculado a tu asesor exitosamente."})


# ---------------------------
# CHAT
# ---------------------------

@app.route("/chat-personal")
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def client_chat_page():
    store = get_store()
    uid = session["userId"]
    cliente = store.get_cliente(uid)

    asesor_card, messages, rid = None, [], None
    asesor_id = cliente.get("asesorAsignado")
    if asesor_id and store.find_asesor(asesor_id):
        asesor_card = profiles.advisor_card(store, asesor_id)
        rid = chat.room_id(uid, asesor_id)
        messages = chat.get_messages(store, rid, USER_TYPE_CLIENTE)
    else:
        flash("Aún no tienes un asesor asignado.", "info")

    return render_template(
        "chat_personal_cliente.html",
        cliente=public_doc(cliente),
        asesor_asignado=asesor_card,
        chat_messages=messages,
        room_id=rid,
    )


@app.route("/cliente/api/chat/<asesor_id>")
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def api_client_chat_messages(asesor_id):
    store = get_store()
    uid = session["userId"]
    chat.ensure_client_advisor_pair(store, uid, asesor_id)
    messages = chat.get_messages(store, chat.room_id(uid, asesor_id), USER_TYPE_CLIENTE)
    return jsonify({"success": True, "messages": messages})


@app.route("/cliente/api/send-message", methods=["POST"])
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def api_client_send_message():
    store = get_store()
    uid = session["userId"]
    data = _payload()
    if not data.get("asesorId") or not data.get("messageText"):
        return jsonify({"success": False, "message": "Datos incompletos para enviar mensaje."}), 400
    chat.ensure_client_advisor_pair(store, uid, data["asesorId"])
    _, sent = chat.send_message(
        store, uid, USER_TYPE_CLIENTE, data["asesorId"], data["messageText"], data.get("timestamp")
    )
    return jsonify({"success": True, "message": "Mensaje enviado.", "sentMessage": sent})


@app.route("/asesor/chat-general")
@login_required
@user_type_required(USER_TYPE_ASESOR)
def advisor_chat_page():
    items = chat.sidebar(get_store(), session["userId"])
    return render_template("chat_general_asesor.html", clientes=items, asesor_id=session["userId"])


@app.route("/asesor/api/chat/<cliente_id>")
@login_required
@user_type_required(USER_TYPE_ASESOR)
def api_advisor_chat_messages(cliente_id):
    store = get_store()
    uid = session["userId"]
    chat.ensure_client_advisor_pair(store, cliente_id, uid)
    messages = chat.get_messages(store, chat.room_id(uid, cliente_id), USER_TYPE_ASESOR)
    return jsonify({"success": True, "messages": messages})


@app.route("/asesor/api/send-message", methods=["POST"])
@login_required
@user_type_required(USER_TYPE_ASESOR)
def api_advisor_send_message():
    store = get_store()
    uid = session["userId"]
    data = _payload()
    if not data.get("clienteId") or not data.get("messageText"):
        return jsonify({"success": False, "message": "Datos incompletos para enviar mensaje."}), 400
    chat.ensure_client_advisor_pair(store, data["clienteId"], uid)
    _, sent = chat.send_message(
        store, uid, USER_TYPE_ASESOR, data["clienteId"], data["messageText"], data.get("timestamp")
    )
    return jsonify({"success": True, "message": "Mensaje enviado.", "sentMessage": sent})


@app.route("/asesor/api/clientes-chat-sidebar")
@login_required
@user_type_required(USER_TYPE_ASESOR)
def api_advisor_chat_sidebar():
    return jsonify({"success": True, "clientes": chat.sidebar(get_store(), session["userId"])})


# ---------------------------
# CALENDAR (both roles)
# ---------------------------

def _calendar_page(owner_type):
    return render_template("calendario.html", owner_type=owner_type)


def _calendar_collection(owner_type):
    store = get_store()
    uid = session["userId"]
    if request.method == "GET":
        return jsonify(calendar_events.list_events(store, uid))
    event_id = calendar_events.create_event(store, uid, owner_type, _payload())
    return jsonify({"success": True, "message": "Evento creado exitosamente.", "eventId": event_id}), 201


def _calendar_item(event_id):
    store = get_store()
    uid = session["userId"]
    if request.method == "PUT":
        calendar_events.update_event(store, uid, event_id, _payload())
        return jsonify({"success": True, "message": "Evento actualizado exitosamente."})
    calendar_events.delete_event(store, uid, event_id)
    return jsonify({"success": True, "message": "Evento eliminado exitosamente."})


@app.route("/asesor/calendario")
@login_required
@user_type_required(USER_TYPE_ASESOR)
def advisor_calendar_page():
    return _calendar_page(USER_TYPE_ASESOR)


@app.route("/asesor/api/eventos", methods=["GET", "POST"])
@login_required
@user_type_required(USER_TYPE_ASESOR)
def api_advisor_events():
    return _calendar_collection(USER_TYPE_ASESOR)


@app.route("/asesor/api/eventos/<event_id>", methods=["PUT", "DELETE"])
@login_required
@user_type_required(USER_TYPE_ASESOR)
def api_advisor_event(event_id):
    return _calendar_item(event_id)


@app.route("/cliente/calendario")
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def client_calendar_page():
    return _calendar_page(USER_TYPE_CLIENTE)


@app.route("/cliente/api/eventos", methods=["GET", "POST"])
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def api_client_events():
    return _calendar_collection(USER_TYPE_CLIENTE)


@app.route("/cliente/api/eventos/<event_id>", methods=["PUT", "DELETE"])
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def api_client_event(event_id):
    return _calendar_item(event_id)


# ---------------------------
# FINANCIAL GOALS (client)
# ---------------------------

@app.route("/objetivos-financieros")
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def goals_page():
    return render_template("objetivos_financieros.html")


@app.route("/cliente/api/objetivos", methods=["GET", "POST"])
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def api_goals():
    store = get_store()
    uid = session["userId"]
    if request.method == "GET":
        return jsonify(goals.list_goals(store, uid))
    goal_id = goals.create_goal(store, uid, _payload())
    return jsonify({"success": True, "message": "Objetivo financiero creado exitosamente.", "objetivoId": goal_id}), 201


@app.route("/cliente/api/objetivos/<goal_id>", methods=["GET", "PUT", "DELETE"])
@login_required
@user_type_required(USER_TYPE_CLIENTE)
def api_goal(goal_id):
    store = get_store()
    uid = session["userId"]
    if request.method == "GET":
        return jsonify(goals.get_goal(store, uid, goal_id))
    if request.method == "PUT":
        goals.update_goal(store, uid, goal_id, _payload())
        return jsonify({"success": True, "message": "Objetivo financiero actualizado exitosamente."})
    goals.delete_goal(store, uid, goal_id)
    return jsonify({"success": True, "message": "Objetivo financiero eliminado exitosamente."})


# ---------------------------
# RUN APP
# ---------------------------

if __name__ == "__main__":
    with app.app_context():
        get_store()
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "8080")), debug=os.getenv("FLASK_DEBUG") == "1")
