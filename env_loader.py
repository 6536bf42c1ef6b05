"""
Stage environment loading for the multi-stack Serverless dispatcher.

Reads .env.<stage> into an explicit StageEnvironment object instead of
mutating os.environ. The merged variables are handed to each Serverless
invocation through subprocess' env argument.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from dotenv import dotenv_values

from validation import MissingEnvFileError


STACKS_VARIABLE = 'STACKS'
REGIONS_VARIABLE = 'REGIONS'


def split_list(value: Optional[str]) -> List[str]:
    """Split a comma-separated value, trimming entries and dropping empty ones."""
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]


@dataclass
class StageEnvironment:
    """Variables visible to a dispatcher run for one stage."""
    stage: str
    env_file: Path
    variables: Dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> Optional[str]:
        return self.variables.get(name)

    @property
    def stacks(self) -> List[str]:
        """Stack names from STACKS, in file order, duplicates kept."""
        return split_list(self.get(STACKS_VARIABLE))

    @property
    def regions(self) -> List[str]:
        """Regions from REGIONS; empty means no region fan-out."""
        return split_list(self.get(REGIONS_VARIABLE))


def env_file_path(stage: str, working_dir: Union[str, Path] = ".") -> Path:
    return Path(working_dir) / f".env.{stage}"


def process_environment(
    stage: str,
    working_dir: Union[str, Path] = ".",
    base_environ: Optional[Mapping[str, str]] = None
) -> StageEnvironment:
    """
    Build a StageEnvironment from the process environment alone.

    Used for an explicit --stack run, where .env.<stage> is not read.
    """
    if base_environ is None:
        base_environ = os.environ

    return StageEnvironment(
        stage=stage,
        env_file=env_file_path(stage, working_dir),
        variables=dict(base_environ)
    )


def load_stage_environment(
    stage: str,
    working_dir: Union[str, Path] = ".",
    base_environ: Optional[Mapping[str, str]] = None
) -> StageEnvironment:
    """
    Load the env file for a stage.

    Variables already present in the base environment win over values from
    the file, the same way load_dotenv() behaves without override=True.

    Args:
        stage: Stage name selecting .env.<stage>
        working_dir: Directory containing the env file
        base_environ: Environment to merge with (defaults to os.environ)

    Returns:
        StageEnvironment with the merged variables

    Raises:
        MissingEnvFileError: If the env file does not exist
    """
    env_file = env_file_path(stage, working_dir)
    if not env_file.is_file():
        raise MissingEnvFileError(
            f"No env file present for the current environment: {stage}"
        )

    if base_environ is None:
        base_environ = os.environ

    # Keys declared without a value come back as None
    file_values = {
        key: value
        for key, value in dotenv_values(env_file).items()
        if value is not None
    }

    variables = {**file_values, **dict(base_environ)}

    return StageEnvironment(stage=stage, env_file=env_file, variables=variables)
