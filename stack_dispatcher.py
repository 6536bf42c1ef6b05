"""
Stack dispatcher for the multi-stack Serverless CLI.

This module provides functionality to run one Serverless command across stacks:
- Resolve the target stacks (explicit --stack or STACKS)
- Expand each stack into per-region invocations when REGIONS is set
- Invoke the Serverless CLI with each stack directory as working directory
- Record every invocation's exit code without stopping on failure
"""

import json
import subprocess
import sys
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

from args_resolver import InvocationRequest, build_forwarded_flags, REGION_FLAG
from env_loader import StageEnvironment
from validation import (
    MissingStacksVariableError,
    MissingStackDirectoryError,
    DEFAULT_BINARY
)


YELLOW = "\x1b[33m"
RESET = "\x1b[0m"

Runner = Callable[[List[str], Path, Mapping[str, str]], int]


@dataclass
class InvocationResult:
    """Result of a single Serverless CLI invocation."""
    stack_name: str
    command: List[str]
    return_code: int
    region: Optional[str] = None
    status: str = "success"  # "success" or "failed"


@dataclass
class StackExecutionResult:
    """Result of running the command against one stack."""
    stack_name: str
    stack_path: str
    status: str  # "success", "failed" or "skipped"
    invocations: List[InvocationResult] = field(default_factory=list)
    error_message: Optional[str] = None


@dataclass
class DispatchResult:
    """Result of a complete dispatcher run."""
    sub_command: str
    stage: str
    stack_results: List[StackExecutionResult]
    status: str  # "success" or "failed"

    @property
    def invocation_count(self) -> int:
        return sum(len(result.invocations) for result in self.stack_results)


def build_command(
    binary: str,
    sub_command: str,
    forwarded_flags: Sequence[str],
    region: Optional[str] = None,
    colors: str = "always"
) -> List[str]:
    """
    Build the argument vector for one Serverless invocation.

    Returns:
        [binary, sub_command, *flags, (--region region), --colors colors]
    """
    command = [binary, sub_command, *forwarded_flags]
    if region:
        command.extend([REGION_FLAG, region])
    command.extend(["--colors", colors])
    return command


def run_command(command: List[str], cwd: Path, env: Mapping[str, str]) -> int:
    """
    Run a command with output streamed straight to the terminal.

    Args:
        command: Argument vector
        cwd: Working directory for the child process
        env: Complete environment for the child process

    Returns:
        The child's exit code
    """
    result = subprocess.run(
        command,
        cwd=str(cwd),
        env=dict(env)
    )
    return result.returncode


class StackDispatcher:
    """Runs one Serverless sub-command across the resolved stacks."""

    def __init__(
        self,
        request: InvocationRequest,
        environment: StageEnvironment,
        working_dir: Union[str, Path] = ".",
        binary: str = DEFAULT_BINARY,
        colors: str = "always",
        runner: Optional[Runner] = None
    ):
        """
        Initialize the dispatcher.

        Args:
            request: Parsed invocation request
            environment: Variables loaded for the request's stage
            working_dir: Directory the stack names are relative to
            binary: Serverless CLI executable
            colors: Value passed to --colors on every invocation
            runner: Callable used to execute commands (defaults to run_command)
        """
        self.request = request
        self.environment = environment
        self.working_dir = Path(working_dir)
        self.binary = binary
        self.colors = colors
        self.runner = runner or run_command

    def resolve_targets(self) -> List[str]:
        """
        Resolve the ordered list of stacks to run against.

        Returns:
            [explicit stack] when --stack was given, otherwise the STACKS entries

        Raises:
            MissingStacksVariableError: If STACKS is unset or empty
        """
        if self.request.explicit_stack is not None:
            return [self.request.explicit_stack]

        stacks = self.environment.stacks
        if not stacks:
            raise MissingStacksVariableError(
                f"Set STACKS field in the file: .env.{self.environment.stage}"
            )
        return stacks

    def execute_on_stack(
        self,
        stack_name: str,
        forwarded_flags: Sequence[str],
        regions: Optional[Sequence[str]] = None
    ) -> StackExecutionResult:
        """
        Run the sub-command against a single stack.

        A missing stack directory is reported and the stack is skipped. A
        non-zero exit code is recorded and the remaining regions still run.

        Args:
            stack_name: Stack directory name, relative to working_dir
            forwarded_flags: Flags passed through to the Serverless CLI
            regions: Regions to fan out to; empty or None for one invocation

        Returns:
            StackExecutionResult for the stack
        """
        stack_name = stack_name.strip()
        stack_path = (self.working_dir / stack_name).resolve()

        if not stack_name or not stack_path.is_dir():
            error = MissingStackDirectoryError(f'The folder "{stack_path}" doesn\'t exist.')
            print(str(error), file=sys.stderr)
            return StackExecutionResult(
                stack_name=stack_name,
                stack_path=str(stack_path),
                status="skipped",
                error_message=str(error)
            )

        print(f"\n\n{YELLOW}Executing command in the stack: {RESET}{stack_name}\n\n")

        targets = list(regions) if regions else [None]
        invocations = []
        for region in targets:
            command = build_command(
                self.binary,
                self.request.sub_command,
                forwarded_flags,
                region=region,
                colors=self.colors
            )
            if region:
                print(f"Region: {region}")

            try:
                return_code = self.runner(command, stack_path, self.environment.variables)
            except OSError as e:
                print(f"Failed to start {self.binary} in {stack_path}: {str(e)}", file=sys.stderr)
                return_code = 127

            invocations.append(InvocationResult(
                stack_name=stack_name,
                command=command,
                return_code=return_code,
                region=region,
                status="success" if return_code == 0 else "failed"
            ))
            if return_code != 0:
                target = f"{stack_name} ({region})" if region else stack_name
                print(f"Command failed for stack {target} with exit code {return_code}", file=sys.stderr)

        failed = [invocation for invocation in invocations if invocation.status == "failed"]
        return StackExecutionResult(
            stack_name=stack_name,
            stack_path=str(stack_path),
            status="failed" if failed else "success",
            invocations=invocations,
            error_message=(
                f"{len(failed)} of {len(invocations)} invocation(s) failed" if failed else None
            )
        )

    def run(self) -> DispatchResult:
        """
        Execute the sub-command against every resolved stack, in order.

        With --stack, exactly one invocation runs and a user --region is
        forwarded unchanged. Otherwise each STACKS entry runs, fanned out over
        REGIONS when it is set.

        Returns:
            DispatchResult with one StackExecutionResult per target

        Raises:
            MissingStacksVariableError: If no target can be resolved
        """
        targets = self.resolve_targets()

        if self.request.explicit_stack is not None:
            regions: List[str] = []
        else:
            regions = self.environment.regions

        forwarded_flags = build_forwarded_flags(self.request, strip_region=bool(regions))

        print(f"\n{'='*80}")
        print(f"Serverless {self.request.sub_command}: stage {self.environment.stage}")
        print(f"Stacks: {', '.join(targets)}")
        if regions:
            print(f"Regions: {', '.join(regions)}")
        print(f"{'='*80}")

        stack_results = []
        for stack_name in targets:
            stack_results.append(self.execute_on_stack(stack_name, forwarded_flags, regions))

        status = "success"
        if any(result.status != "success" for result in stack_results):
            status = "failed"

        return DispatchResult(
            sub_command=self.request.sub_command,
            stage=self.environment.stage,
            stack_results=stack_results,
            status=status
        )


def save_report(result: DispatchResult, report_file: Union[str, Path]) -> Path:
    """
    Save a dispatch result to a JSON file.

    Args:
        result: DispatchResult to save
        report_file: Path to the report file

    Returns:
        Path the report was written to
    """
    report_path = Path(report_file)
    report_path.parent.mkdir(parents=True, exist_ok=True)

    report: Dict = asdict(result)
    report['invocation_count'] = result.invocation_count

    with open(report_path, 'w') as f:
        json.dump(report, f, indent=2)

    print(f"\nExecution report saved to {report_path}")
    return report_path
