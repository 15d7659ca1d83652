"""Tests for configuration resolution and validation."""

from pathlib import Path

import pytest

from envinject.loader import ConfigLoader, Configuration, split_roots
from envinject.exceptions import ConfigurationError


def test_resolves_from_default_control_variables():
    environ = {'APP_PREFIX': 'APP_PREFIX_', 'ASSET_DIRS': '/site /other'}

    config = ConfigLoader().resolve(environ)

    assert config.prefix == 'APP_PREFIX_'
    assert config.roots == [Path('/site'), Path('/other')]
    assert config.on_error == 'stop'
    assert config.follow_symlinks is False
    assert config.mask_values is False
    assert config.timeout is None
    assert config.dry_run is False


def test_missing_prefix_is_configuration_error():
    with pytest.raises(ConfigurationError) as exc_info:
        ConfigLoader().resolve({'ASSET_DIRS': '/site'})

    assert exc_info.value.exit_code == 2
    assert 'APP_PREFIX must be set' in str(exc_info.value)


def test_empty_prefix_counts_as_missing():
    with pytest.raises(ConfigurationError) as exc_info:
        ConfigLoader().resolve({'APP_PREFIX': '', 'ASSET_DIRS': '/site'})

    assert [e.path for e in exc_info.value.errors] == ['prefix']


def test_missing_roots_is_configuration_error():
    with pytest.raises(ConfigurationError) as exc_info:
        ConfigLoader().resolve({'APP_PREFIX': 'APP_'})

    assert 'ASSET_DIRS must be set' in str(exc_info.value)


def test_whitespace_only_roots_count_as_missing():
    with pytest.raises(ConfigurationError):
        ConfigLoader().resolve({'APP_PREFIX': 'APP_', 'ASSET_DIRS': '   '})


def test_both_missing_reports_both_errors():
    with pytest.raises(ConfigurationError) as exc_info:
        ConfigLoader().resolve({})

    paths = [e.path for e in exc_info.value.errors]
    assert paths == ['prefix', 'roots']


def test_custom_control_variable_names():
    environ = {'VITE_PREFIX': 'VITE_', 'WEB_ROOTS': '/usr/share/nginx/html'}

    config = ConfigLoader().resolve(
        environ, overrides={'prefix_var': 'VITE_PREFIX', 'roots_var': 'WEB_ROOTS'}
    )

    assert config.prefix == 'VITE_'
    assert config.roots == [Path('/usr/share/nginx/html')]
    assert config.prefix_var == 'VITE_PREFIX'


def test_custom_control_variable_named_in_error():
    with pytest.raises(ConfigurationError) as exc_info:
        ConfigLoader().resolve({}, overrides={'prefix_var': 'MY_PREFIX'})

    assert 'MY_PREFIX must be set' in str(exc_info.value)


def test_duplicate_roots_keep_first_occurrence():
    config = ConfigLoader().resolve({'APP_PREFIX': 'APP_', 'ASSET_DIRS': '/b /a /b'})

    assert config.roots == [Path('/b'), Path('/a')]


def test_overrides_win_over_environment():
    environ = {'APP_PREFIX': 'ENV_', 'ASSET_DIRS': '/env'}

    config = ConfigLoader().resolve(
        environ, overrides={'prefix': 'CLI_', 'roots': ['/cli'], 'timeout': None}
    )

    assert config.prefix == 'CLI_'
    assert config.roots == [Path('/cli')]


def test_config_file_supplies_defaults(tmp_path):
    config_file = tmp_path / 'envinject.yaml'
    config_file.write_text(
        "prefix: FILE_\n"
        "roots:\n"
        "  - /one\n"
        "  - /two\n"
        "on_error: continue\n"
        "follow_symlinks: true\n"
        "timeout: 30\n"
    )

    config = ConfigLoader().resolve({}, config_file)

    assert config.prefix == 'FILE_'
    assert config.roots == [Path('/one'), Path('/two')]
    assert config.on_error == 'continue'
    assert config.follow_symlinks is True
    assert config.timeout == 30.0


def test_environment_overrides_config_file(tmp_path):
    config_file = tmp_path / 'envinject.yaml'
    config_file.write_text("prefix: FILE_\nroots: /from-file\n")

    config = ConfigLoader().resolve({'APP_PREFIX': 'ENV_'}, config_file)

    assert config.prefix == 'ENV_'
    assert config.roots == [Path('/from-file')]


def test_config_file_can_rename_control_variables(tmp_path):
    config_file = tmp_path / 'envinject.yaml'
    config_file.write_text("prefix_var: REACT_PREFIX\nroots_var: REACT_ROOTS\n")

    config = ConfigLoader().resolve(
        {'REACT_PREFIX': 'REACT_APP_', 'REACT_ROOTS': '/build'}, config_file
    )

    assert config.prefix == 'REACT_APP_'
    assert config.roots == [Path('/build')]


def test_unknown_config_field_rejected(tmp_path):
    config_file = tmp_path / 'envinject.yaml'
    config_file.write_text("prefix: A_\nroots: /x\nrecursive: false\n")

    with pytest.raises(ConfigurationError) as exc_info:
        ConfigLoader().resolve({}, config_file)

    assert "Unknown field 'recursive'" in str(exc_info.value)


def test_config_file_must_be_mapping(tmp_path):
    config_file = tmp_path / 'envinject.yaml'
    config_file.write_text("- just\n- a list\n")

    with pytest.raises(ConfigurationError) as exc_info:
        ConfigLoader().resolve({}, config_file)

    assert 'must be a YAML mapping' in str(exc_info.value)


def test_missing_config_file_is_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError) as exc_info:
        ConfigLoader().resolve({}, tmp_path / 'absent.yaml')

    assert 'Failed to load config file' in str(exc_info.value)


def test_empty_config_file_is_allowed(tmp_path):
    config_file = tmp_path / 'envinject.yaml'
    config_file.write_text("")

    config = ConfigLoader().resolve({'APP_PREFIX': 'A_', 'ASSET_DIRS': '/x'}, config_file)

    assert config.prefix == 'A_'


@pytest.mark.parametrize('settings, message', [
    ({'on_error': 'retry'}, "'on_error' must be one of"),
    ({'timeout': 0}, "'timeout' must be positive"),
    ({'timeout': 'soon'}, "'timeout' must be a number"),
    ({'timeout': float('nan')}, "'timeout' must be a finite number"),
    ({'timeout': float('inf')}, "'timeout' must be a finite number"),
    ({'follow_symlinks': 'yes please'}, "'follow_symlinks' must be a boolean"),
])
def test_invalid_settings_rejected(settings, message):
    overrides = {'prefix': 'A_', 'roots': ['/x']}
    overrides.update(settings)

    with pytest.raises(ConfigurationError) as exc_info:
        ConfigLoader().resolve({}, overrides=overrides)

    assert message in str(exc_info.value)


def test_split_roots():
    assert split_roots(None) == []
    assert split_roots("  /a\t/b\n/c ") == ['/a', '/b', '/c']
    assert split_roots(['/a', '', '/b']) == ['/a', '/b']
    with pytest.raises(TypeError):
        split_roots(42)
