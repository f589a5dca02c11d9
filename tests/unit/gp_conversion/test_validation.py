import pytest

from gp_common.errors import ColumnSettingsValidationError
from gp_conversion.models import ColumnSettings
from gp_conversion.validation import ensure_valid, validate_column_settings


pytestmark = pytest.mark.unit_conversion


def _settings(**sections) -> ColumnSettings:
    return ColumnSettings.model_validate({"columnId": "price", **sections})


def test_defaults_are_valid() -> None:
    assert validate_column_settings(_settings()) == []


@pytest.mark.parametrize("size", ["12px", "1.5em", "90%", "default", ""])
def test_font_sizes_accepted(size: str) -> None:
    assert validate_column_settings(_settings(cell={"fontSize": size})) == []


def test_problems_are_collected() -> None:
    settings = _settings(
        header={"fontSize": "huge"},
        cell={"borderWidth": -1},
        formatter={"decimals": -2},
        editor={"valueSource": "json", "jsonValues": "[1,", "maxLength": -1},
        filter={"minValidYear": 2030, "maxValidYear": 2000},
    )
    problems = validate_column_settings(settings)
    assert len(problems) == 6
    assert "Invalid header font size: 'huge'" in problems


def test_missing_column_id() -> None:
    assert validate_column_settings(ColumnSettings(column_id="")) == ["Column ID is required"]


def test_ensure_valid_raises_with_errors() -> None:
    with pytest.raises(ColumnSettingsValidationError) as excinfo:
        ensure_valid(_settings(formatter={"decimals": -1}))
    assert excinfo.value.column_id == "price"
    assert excinfo.value.errors == ["Decimal places cannot be negative"]
