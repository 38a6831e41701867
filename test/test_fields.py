import pytest

from errors import ValidationError
from fields import clean_text


def test_clean_text_trims_and_defaults():
    assert clean_text("  hola ", "nombre") == "hola"
    assert clean_text(None, "nombre") == ""


@pytest.mark.parametrize("value", [42, 3.5, True, ["x"], {"a": 1}])
def test_clean_text_rejects_non_strings(value):
    with pytest.raises(ValidationError) as exc:
        clean_text(value, "nombre")
    assert exc.value.errors == ["El campo nombre debe ser texto."]
