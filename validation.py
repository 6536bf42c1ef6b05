"""
Validation module for the multi-stack Serverless dispatcher.

This module provides the precondition checks that run before any stack is
touched: Serverless CLI availability, sub-command, stage and stage env file.
Checks run in a fixed order and the first failure stops the run.
"""

import shutil
from pathlib import Path
from typing import List, Optional, Union

import boto3

from args_resolver import InvocationRequest


VALID_COMMANDS = ('deploy', 'remove', 'invoke')
DEFAULT_BINARY = 'sls'


class ValidationError(Exception):
    """Exception raised when validation fails."""
    exit_code = 1


class MissingExternalBinaryError(ValidationError):
    """The Serverless CLI is not on the search path."""
    exit_code = 3


class UnrecognizedSubCommandError(ValidationError):
    """The sub-command is not one the dispatcher knows how to run."""
    exit_code = 4


class MissingStageError(ValidationError):
    """Neither --stage nor -s carried a value."""
    exit_code = 5


class MissingEnvFileError(ValidationError):
    """No .env.<stage> file exists for the requested stage."""
    exit_code = 6


class MissingStacksVariableError(ValidationError):
    """STACKS is not set and no --stack was given."""
    exit_code = 7


class MissingStackDirectoryError(ValidationError):
    """A target stack directory does not exist. Only skips that stack."""


def validate_external_binary(binary: str = DEFAULT_BINARY) -> bool:
    """
    Validate that the Serverless CLI is installed.

    Args:
        binary: Executable name to resolve on PATH

    Returns:
        True if the binary can be resolved

    Raises:
        MissingExternalBinaryError: If the binary is not on PATH
    """
    if not shutil.which(binary):
        raise MissingExternalBinaryError(
            "This script requires 'Serverless Framework' globally.\n\n"
            "Run:\nnpm i -g serverless"
        )
    return True


def validate_sub_command(sub_command: Optional[str]) -> bool:
    """
    Validate that the sub-command is one of deploy, remove or invoke.

    Raises:
        UnrecognizedSubCommandError: If the sub-command is not recognized
    """
    if sub_command not in VALID_COMMANDS:
        raise UnrecognizedSubCommandError(
            f"Multi Stack Serverless CLI can't resolve the command: {sub_command}"
        )
    return True


def validate_stage(stage: Optional[str]) -> bool:
    if not stage:
        raise MissingStageError(
            "You must set a stage to deploy to the corresponding .env file."
        )
    return True


def validate_env_file(stage: str, working_dir: Union[str, Path] = ".") -> bool:
    """
    Validate that the stage env file exists.

    Args:
        stage: Stage name selecting .env.<stage>
        working_dir: Directory the env file is looked up in

    Raises:
        MissingEnvFileError: If .env.<stage> does not exist
    """
    env_file = Path(working_dir) / f".env.{stage}"
    if not env_file.is_file():
        raise MissingEnvFileError(
            f"No env file present for the current environment: {stage}"
        )
    return True


def validate_all(
    request: InvocationRequest,
    working_dir: Union[str, Path] = ".",
    binary: str = DEFAULT_BINARY
) -> None:
    """
    Perform all precondition checks before dispatching.

    The checks run in order (binary, sub-command, stage, env file) and the
    first failing check raises; later checks are not evaluated.

    Raises:
        ValidationError: The first failing check's error
    """
    validate_external_binary(binary)
    validate_sub_command(request.sub_command)
    validate_stage(request.stage)
    validate_env_file(request.stage, working_dir)


def validate_regions(regions: List[str], service: str = 'lambda') -> List[str]:
    """
    Find region identifiers unknown to botocore's endpoint data.

    This only reads the endpoint metadata bundled with botocore; no AWS call
    is made and no credentials are needed.

    Args:
        regions: Region identifiers from REGIONS
        service: Service whose partition regions are checked

    Returns:
        Regions not found in any partition, in input order
    """
    if not regions:
        return []

    session = boto3.Session()
    known = set()
    for partition in session.get_available_partitions():
        known.update(session.get_available_regions(service, partition_name=partition))

    return [region for region in regions if region not in known]
