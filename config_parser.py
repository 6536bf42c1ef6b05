"""
Configuration parser for the multi-stack Serverless dispatcher.

This module provides functionality to parse and validate the optional
multi-stack.yaml settings file against its JSON schema.

Without a settings file every invocation requests `--colors always`. Setting
`cli.colors` to `never` or `auto` is an explicit project-level override of
that default, for CI logs that should not carry ANSI escapes.
"""

import yaml
from dataclasses import dataclass, field
from typing import Optional, Union
from pathlib import Path
from jsonschema import validate


CONFIG_FILE_NAME = "multi-stack.yaml"

CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Multi-stack Serverless settings",
    "type": "object",
    "properties": {
        "version": {"type": "string"},
        "cli": {
            "type": "object",
            "properties": {
                "binary": {"type": "string", "minLength": 1},
                "colors": {"type": "string", "enum": ["always", "never", "auto"]}
            },
            "additionalProperties": False
        },
        "report_file": {"type": "string", "minLength": 1}
    },
    "additionalProperties": False
}


@dataclass
class CliConfig:
    """Settings for the Serverless CLI invocation."""
    binary: str = "sls"
    # Override of the --colors always default; only changed via multi-stack.yaml
    colors: str = "always"


@dataclass
class MultiStackConfig:
    """Complete dispatcher settings."""
    version: str = "1.0"
    cli: CliConfig = field(default_factory=CliConfig)
    report_file: Optional[str] = None


class ConfigParser:
    """Parser for multi-stack.yaml settings files."""

    def __init__(self, schema: Optional[dict] = None):
        """
        Initialize the configuration parser.

        Args:
            schema: JSON schema to validate against (defaults to CONFIG_SCHEMA)
        """
        self.schema = schema if schema is not None else CONFIG_SCHEMA

    def parse(self, config_path: Union[str, Path]) -> MultiStackConfig:
        """
        Parse and validate a settings file.

        Args:
            config_path: Path to the multi-stack.yaml file

        Returns:
            Parsed and validated MultiStackConfig object

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValidationError: If config doesn't match schema
            yaml.YAMLError: If YAML is malformed
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            # An empty file means "all defaults"
            config_data = yaml.safe_load(f) or {}

        validate(instance=config_data, schema=self.schema)

        return self._parse_config(config_data)

    def _parse_config(self, config_data: dict) -> MultiStackConfig:
        """Convert raw config data into MultiStackConfig object."""
        defaults = CliConfig()
        cli_data = config_data.get('cli', {})
        cli = CliConfig(
            binary=cli_data.get('binary', defaults.binary),
            colors=cli_data.get('colors', defaults.colors)
        )

        return MultiStackConfig(
            version=config_data.get('version', MultiStackConfig.version),
            cli=cli,
            report_file=config_data.get('report_file')
        )


def load_config(working_dir: Union[str, Path] = ".") -> MultiStackConfig:
    """
    Load multi-stack.yaml from a directory, falling back to defaults.

    Args:
        working_dir: Directory that may contain multi-stack.yaml

    Returns:
        Parsed MultiStackConfig, or the defaults when no file is present
    """
    config_path = Path(working_dir) / CONFIG_FILE_NAME
    if not config_path.exists():
        return MultiStackConfig()

    return ConfigParser().parse(config_path)
