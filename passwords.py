import logging

from errors import ValidationError
from identity_client import MIN_PASSWORD_LENGTH

logger = logging.getLogger(__name__)


def validate_new_password(current_password, new_password, confirm_password):
    errors = []
    if not current_password or not new_password or not confirm_password:
        errors.append("Por favor, rellena todos los campos.")
    if (new_password or "") != (confirm_password or ""):
        errors.append("Las nuevas contraseñas no coinciden.")
    if len(new_password or "") < MIN_PASSWORD_LENGTH:
        errors.append(f"La nueva contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres.")
    return errors


def change_password(identity, email, current_password, new_password, confirm_password):
    """
    Re-authenticate with the current password, then set the new one.

    Input problems are raised as ValidationError before the identity
    provider is contacted; provider failures surface as UpstreamError.
    """
    errors = validate_new_password(current_password, new_password, confirm_password)
    if errors:
        raise ValidationError(errors)

    result = identity.sign_in(email, current_password)
    identity.update_password(result.id_token, new_password)
    logger.info("Password changed for %s", result.uid)
    return result.uid
