from errors import ValidationError


def clean_text(value, label):
    """Trimmed text of a submitted field; missing or null becomes ''."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"El campo {label} debe ser texto.")
    return value.strip()
