#!/usr/bin/env python3
"""
Command-line entry point for the multi-stack Serverless dispatcher.

Usage:
    multi-stack-sls <deploy|remove|invoke> --stage <stage> [--stack <name>] [flags...]

Every flag other than --stack (and --region while REGIONS fan-out is active)
is forwarded to the Serverless CLI unchanged. Each validation failure maps to
its own non-zero exit code; a run where any stack failed or was skipped exits
with 1.
"""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple, Union

import yaml
from botocore.exceptions import BotoCoreError
from jsonschema import ValidationError as SchemaValidationError

from args_resolver import parse_invocation
from config_parser import load_config, CONFIG_FILE_NAME
from env_loader import load_stage_environment, process_environment
from stack_dispatcher import StackDispatcher, DispatchResult, save_report
from validation import (
    validate_all,
    validate_regions,
    ValidationError,
    MissingExternalBinaryError,
    VALID_COMMANDS
)


CONFIG_ERROR_EXIT_CODE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='multi-stack-sls',
        description='Run a Serverless Framework command across multiple stacks and regions',
        add_help=False
    )
    parser.add_argument(
        'command',
        nargs='?',
        help=f"Serverless command to run ({', '.join(VALID_COMMANDS)})"
    )
    parser.add_argument(
        'flags',
        nargs='*',
        help='--stage/-s <stage>, --stack <name> and any flags forwarded to sls'
    )
    return parser


def split_arguments(argv: List[str]) -> Tuple[Optional[str], List[str]]:
    """
    Split raw arguments into the sub-command and its flags.

    The first token is always the sub-command, even when it looks like a
    flag, so a misplaced flag is reported as an unrecognized command after
    the Serverless CLI check.
    """
    if not argv:
        return None, []
    return argv[0], list(argv[1:])


def main(argv: Optional[List[str]] = None, working_dir: Optional[Union[str, Path]] = None) -> int:
    """
    Main entry point for the dispatcher.

    Args:
        argv: Arguments after the program name (defaults to sys.argv[1:])
        working_dir: Directory holding the env files and stacks (defaults to cwd)

    Returns:
        Process exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    if argv in (['-h'], ['--help']):
        build_parser().print_help()
        return 0

    command, flags = split_arguments(argv)
    working_dir = Path(working_dir) if working_dir is not None else Path(os.getcwd())

    try:
        config = load_config(working_dir)
    except (SchemaValidationError, yaml.YAMLError) as e:
        print(f"Invalid {CONFIG_FILE_NAME}: {str(e)}", file=sys.stderr)
        return CONFIG_ERROR_EXIT_CODE

    request = parse_invocation(command, flags)

    try:
        validate_all(request, working_dir, binary=config.cli.binary)
        if request.explicit_stack is not None:
            # An explicit stack never reads .env.<stage>
            environment = process_environment(request.stage, working_dir)
        else:
            environment = load_stage_environment(request.stage, working_dir)
    except MissingExternalBinaryError as e:
        print(f"\n{str(e)}")
        return e.exit_code
    except ValidationError as e:
        print(str(e), file=sys.stderr)
        return e.exit_code

    if request.explicit_stack is None:
        warn_unknown_regions(environment.regions)

    dispatcher = StackDispatcher(
        request=request,
        environment=environment,
        working_dir=working_dir,
        binary=config.cli.binary,
        colors=config.cli.colors
    )

    try:
        result = dispatcher.run()
    except ValidationError as e:
        print(str(e), file=sys.stderr)
        return e.exit_code

    print_summary(result)

    if config.report_file:
        save_report(result, working_dir / config.report_file)

    return 0 if result.status == "success" else 1


def warn_unknown_regions(regions: List[str]) -> None:
    """Print a warning for REGIONS entries botocore does not know about."""
    try:
        unknown = validate_regions(regions)
    except BotoCoreError as e:
        print(f"Warning: could not check REGIONS against botocore: {str(e)}", file=sys.stderr)
        return

    for region in unknown:
        print(f"Warning: '{region}' is not a known AWS region", file=sys.stderr)


def print_summary(result: DispatchResult) -> None:
    """Print dispatch summary."""
    print()
    print("=" * 80)
    print("Execution Summary")
    print("=" * 80)

    for stack_result in result.stack_results:
        marker = "✓" if stack_result.status == "success" else "✗"
        line = (
            f"{marker} {stack_result.stack_name}: {stack_result.status} "
            f"({len(stack_result.invocations)} invocation(s))"
        )
        if stack_result.error_message:
            line += f" - {stack_result.error_message}"
        print(line)

    print()
    if result.status == "success":
        print(f"✓ {result.sub_command} completed on {len(result.stack_results)} stack(s)")
    else:
        failed = [r for r in result.stack_results if r.status != "success"]
        print(f"✗ {result.sub_command} FAILED on {len(failed)} of {len(result.stack_results)} stack(s)")

    print("=" * 80)


def run() -> None:
    sys.exit(main())


if __name__ == '__main__':
    run()
