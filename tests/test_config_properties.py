"""
Property-based tests for multi-stack.yaml settings validation.

These tests verify that valid settings parse into MultiStackConfig objects,
that invalid settings are rejected by the schema and that a missing file
falls back to defaults.
"""

import tempfile
import yaml
from pathlib import Path
from hypothesis import given, strategies as st, settings
from jsonschema import ValidationError
import pytest

from config_parser import ConfigParser, MultiStackConfig, CliConfig, load_config, CONFIG_FILE_NAME


# Hypothesis strategies for generating test data

@st.composite
def valid_config(draw):
    """Generate a valid settings document."""
    config = {}
    if draw(st.booleans()):
        config['version'] = '1.0'
    if draw(st.booleans()):
        cli = {}
        if draw(st.booleans()):
            cli['binary'] = draw(st.sampled_from(['sls', 'serverless', 'npx-sls']))
        if draw(st.booleans()):
            cli['colors'] = draw(st.sampled_from(['always', 'never', 'auto']))
        config['cli'] = cli
    if draw(st.booleans()):
        config['report_file'] = draw(st.sampled_from(['report.json', 'out/multi-stack.json']))
    return config


@st.composite
def invalid_config(draw):
    """Generate a settings document that should fail validation."""
    config_type = draw(st.sampled_from([
        'unknown_top_level_key',
        'unknown_cli_key',
        'invalid_colors',
        'empty_binary',
        'non_string_report_file'
    ]))

    if config_type == 'unknown_top_level_key':
        return {'stacks': ['api']}
    elif config_type == 'unknown_cli_key':
        return {'cli': {'timeout': 30}}
    elif config_type == 'invalid_colors':
        return {'cli': {'colors': 'rainbow'}}
    elif config_type == 'empty_binary':
        return {'cli': {'binary': ''}}
    else:
        return {'report_file': 42}


def write_config(directory, data):
    path = Path(directory) / CONFIG_FILE_NAME
    with open(path, 'w') as f:
        yaml.dump(data, f)
    return path


# Feature: multi-stack-sls, Property 10: settings validation
@settings(max_examples=100)
@given(config=valid_config())
def test_property_10_valid_settings_parse(config):
    """
    Property 10: Settings validation

    For any valid settings document, parsing succeeds and unset values take
    their defaults.
    """
    with tempfile.TemporaryDirectory() as temp_dir:
        path = write_config(temp_dir, config)

        parsed = ConfigParser().parse(path)

        cli = config.get('cli', {})
        assert parsed.cli.binary == cli.get('binary', 'sls')
        assert parsed.cli.colors == cli.get('colors', 'always')
        assert parsed.report_file == config.get('report_file')
        assert parsed.version == config.get('version', '1.0')


# Feature: multi-stack-sls, Property 10: settings validation
@settings(max_examples=50)
@given(config=invalid_config())
def test_property_10_invalid_settings_rejected(config):
    """For any invalid settings document, parsing raises ValidationError."""
    with tempfile.TemporaryDirectory() as temp_dir:
        path = write_config(temp_dir, config)

        with pytest.raises(ValidationError):
            ConfigParser().parse(path)


def test_missing_settings_file_uses_defaults():
    with tempfile.TemporaryDirectory() as temp_dir:
        config = load_config(temp_dir)

    assert config == MultiStackConfig()
    assert config.cli == CliConfig(binary='sls', colors='always')
    assert config.report_file is None


def test_empty_settings_file_uses_defaults():
    with tempfile.TemporaryDirectory() as temp_dir:
        (Path(temp_dir) / CONFIG_FILE_NAME).write_text("")

        assert load_config(temp_dir) == MultiStackConfig()


def test_parse_missing_file_raises():
    with pytest.raises(FileNotFoundError):
        ConfigParser().parse('/nonexistent/multi-stack.yaml')


def test_malformed_yaml_raises():
    with tempfile.TemporaryDirectory() as temp_dir:
        (Path(temp_dir) / CONFIG_FILE_NAME).write_text("cli: [unclosed\n")

        with pytest.raises(yaml.YAMLError):
            load_config(temp_dir)


def test_colors_default_to_always_without_override():
    """Only an explicit cli.colors setting changes the --colors value."""
    with tempfile.TemporaryDirectory() as temp_dir:
        write_config(temp_dir, {'cli': {'binary': 'serverless'}})

        config = load_config(temp_dir)

    assert config.cli.colors == 'always'
