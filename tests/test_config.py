from __future__ import annotations

import pytest

from fiscaldo.config import (
    DEFAULT_DATABASE_URL,
    PRESETS,
    ConfigError,
    ImportConfig,
    load_import_config,
    resolve_database_url,
)


def test_presets():
    assert PRESETS["mini"].session_row_limit == 2_000
    assert PRESETS["mini"].batch_size == 100
    assert PRESETS["large"].inter_batch_delay == 0
    assert PRESETS["full"].session_row_limit is None


def test_default_preset_is_full():
    assert load_import_config(environ={}) == PRESETS["full"]


def test_environment_overrides_preset():
    config = load_import_config(
        "small",
        environ={"FISCALDO_BATCH_SIZE": "50", "FISCALDO_SESSION_LIMIT": "none"},
    )
    assert config.batch_size == 50
    assert config.session_row_limit is None
    assert config.inter_batch_delay == PRESETS["small"].inter_batch_delay


def test_explicit_overrides_win_and_none_is_ignored():
    config = load_import_config(
        "mini",
        overrides={"batch_size": 10, "session_row_limit": None, "max_retries": 2},
        environ={"FISCALDO_BATCH_SIZE": "50"},
    )
    assert config.batch_size == 10
    assert config.session_row_limit == 2_000
    assert config.max_retries == 2


def test_unknown_preset():
    with pytest.raises(ConfigError, match="Unknown preset"):
        load_import_config("gigante", environ={})


def test_invalid_environment_value():
    with pytest.raises(ConfigError):
        load_import_config(environ={"FISCALDO_BATCH_DELAY": "rapido"})


@pytest.mark.parametrize(
    "options",
    [
        {"batch_size": 0},
        {"session_row_limit": 0},
        {"inter_batch_delay": -1},
        {"max_retries": -1},
    ],
)
def test_out_of_range_values(options):
    with pytest.raises(ConfigError):
        ImportConfig(**options)


def test_resolve_database_url():
    assert resolve_database_url("sqlite:///x.db", environ={}) == "sqlite:///x.db"
    assert (
        resolve_database_url(environ={"FISCALDO_DATABASE_URL": "postgresql://db/rnc"})
        == "postgresql://db/rnc"
    )
    assert resolve_database_url(environ={}) == DEFAULT_DATABASE_URL
