import logging
from functools import wraps

from flask import current_app, flash, g, jsonify, redirect, request, session, url_for

logger = logging.getLogger(__name__)


def wants_json():
    """API and AJAX callers get JSON errors, page requests get redirects."""
    if request.path.startswith("/api/") or "/api/" in request.path:
        return True
    if request.method in ("PUT", "DELETE"):
        return True
    return request.is_json or request.accept_mimetypes.best == "application/json"


def start_session(uid, email, user_type, name=None):
    session.clear()
    session.permanent = True
    session["userId"] = uid
    session["userEmail"] = (email or "").strip().lower()
    session["userType"] = user_type
    session["userName"] = name or email


def login_required(view_func):
    @wraps(view_func)
    def wrapped(*args, **kwargs):
        if session.get("userId"):
            return view_func(*args, **kwargs)
        next_url = request.full_path if request.query_string else request.path
        return redirect(url_for("login_page", next=next_url))
    return wrapped


def is_admin_email(email):
    admins = current_app.config.get("ADMIN_EMAILS") or []
    return bool(email) and email.strip().lower() in [a.lower() for a in admins]


def admin_required(view_func):
    @wraps(view_func)
    def wrapped(*args, **kwargs):
        email = session.get("userEmail")
        if not is_admin_email(email):
            logger.warning("Unauthorized admin access attempt by %s", email or "anonymous")
            return "Acceso denegado. Se requieren permisos de administrador.", 403
        g.user_role = "admin"
        return view_func(*args, **kwargs)
    return wrapped


def user_type_required(user_type):
    """Restrict a view to one kind of user (cliente or asesor)."""
    def decorator(view_func):
        @wraps(view_func)
        def wrapped(*args, **kwargs):
            if session.get("userType") == user_type:
                return view_func(*args, **kwargs)
            logger.warning("Access denied to %s for user type %s", request.path, session.get("userType"))
            message = f"Acceso denegado. Esta función es solo para {user_type}s."
            if wants_json() or request.method == "POST":
                return jsonify({"success": False, "message": message, "redirectTo": "/dashboard"}), 403
            flash(message, "error")
            return redirect("/dashboard")
        return wrapped
    return decorator
