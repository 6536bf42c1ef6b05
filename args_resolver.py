"""
Argument resolution for the multi-stack Serverless dispatcher.

This module turns the raw flags that follow the sub-command into an immutable
InvocationRequest and computes the flag list forwarded to the Serverless CLI:
- Look up flag values (first occurrence wins)
- Resolve the stage from --stage or -s
- Strip dispatcher-only flags (--stack, --region) without mutating the input
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple


STACK_FLAG = '--stack'
STAGE_FLAG = '--stage'
STAGE_SHORT_FLAG = '-s'
REGION_FLAG = '--region'


@dataclass(frozen=True)
class InvocationRequest:
    """Parsed command line for a single dispatcher run."""
    sub_command: str
    flags: Tuple[str, ...]
    stage: Optional[str] = None
    explicit_stack: Optional[str] = None


def get_value(flags: Sequence[str], flag: str) -> Optional[str]:
    """
    Get the value that follows a command line flag.

    Args:
        flags: Command line flags after the sub-command
        flag: The flag to look up (e.g. '--stack')

    Returns:
        The token right after the first occurrence of the flag, or None if the
        flag is absent or is the last token
    """
    if flag not in flags:
        return None

    value_index = list(flags).index(flag) + 1
    if len(flags) > value_index:
        return flags[value_index]

    return None


def remove_flag(flags: Sequence[str], flag: str) -> List[str]:
    """
    Remove a flag and its value from a flag list.

    Only the first occurrence is removed. A flag without a following value is
    left in place.

    Args:
        flags: Command line flags after the sub-command
        flag: The flag to remove

    Returns:
        A new list; the input sequence is not modified
    """
    remaining = list(flags)
    if flag not in remaining:
        return remaining

    flag_index = remaining.index(flag)
    if len(remaining) > flag_index + 1:
        del remaining[flag_index:flag_index + 2]

    return remaining


def get_stage(flags: Sequence[str]) -> Optional[str]:
    """Get the stage from --stage, falling back to -s."""
    stage = get_value(flags, STAGE_FLAG)

    if not stage:
        stage = get_value(flags, STAGE_SHORT_FLAG)

    return stage


def parse_invocation(sub_command: str, flags: Sequence[str]) -> InvocationRequest:
    """
    Build an InvocationRequest from the sub-command and its flags.

    Args:
        sub_command: The Serverless sub-command (deploy, remove, invoke)
        flags: Every token that followed the sub-command

    Returns:
        Immutable InvocationRequest
    """
    flags = tuple(flags)
    explicit_stack = get_value(flags, STACK_FLAG)
    if explicit_stack is not None:
        explicit_stack = explicit_stack.strip()

    return InvocationRequest(
        sub_command=sub_command,
        flags=flags,
        stage=get_stage(flags),
        explicit_stack=explicit_stack
    )


def build_forwarded_flags(request: InvocationRequest, strip_region: bool = False) -> List[str]:
    """
    Compute the flags forwarded to the Serverless CLI.

    Args:
        request: Parsed invocation request
        strip_region: Remove a user supplied --region pair (region fan-out active)

    Returns:
        New list of flags in their original order
    """
    forwarded = list(request.flags)

    if request.explicit_stack is not None:
        forwarded = remove_flag(forwarded, STACK_FLAG)

    if strip_region:
        forwarded = remove_flag(forwarded, REGION_FLAG)

    return forwarded
