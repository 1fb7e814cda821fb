"""Runs external commands with optional retry and dry-run support."""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, TypeVar, Union

from .config import RetryPolicy
from .errors import CommandError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CommandResult:
    command: List[str]
    exit_code: int = 0
    output: str = ""


class CommandExecutor:
    """
    Executes build, push, pull and hook invocations.

    With retry enabled, a failing invocation is repeated until it succeeds or the
    policy's attempts are exhausted; the last failure then propagates. In dry-run
    mode the invocation is only logged and treated as successful.
    """

    def __init__(
        self,
        dry_run: bool = False,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.dry_run = dry_run
        self.retry_policy = retry_policy or RetryPolicy()
        self.sleep = sleep

    def execute(
        self,
        command: str,
        args: List[str],
        retry: bool = False,
        cwd: Optional[Union[str, Path]] = None,
        input: Optional[str] = None,
    ) -> CommandResult:
        cmd = [command, *args]
        result = self.run(
            lambda: self._run_process(cmd, cwd, input),
            shlex.join(cmd),
            retry=retry,
        )
        return result if result is not None else CommandResult(cmd)

    def execute_with_retry(
        self,
        command: str,
        args: List[str],
        cwd: Optional[Union[str, Path]] = None,
        input: Optional[str] = None,
    ) -> CommandResult:
        return self.execute(command, args, retry=True, cwd=cwd, input=input)

    def run(self, action: Callable[[], T], description: str, retry: bool = False) -> Optional[T]:
        """Applies the dry-run and retry policy to an arbitrary action."""
        logger.info("Executing: %s", description)
        if self.dry_run:
            return None
        if not retry:
            return action()

        delays = self.retry_policy.delays()
        for attempt in range(1, self.retry_policy.max_attempts + 1):
            try:
                return action()
            except CommandError as e:
                if attempt >= self.retry_policy.max_attempts:
                    raise
                wait = delays[attempt - 1]
                logger.warning(
                    "Attempt %d/%d failed (%s). Retrying in %.1fs...",
                    attempt,
                    self.retry_policy.max_attempts,
                    e,
                    wait,
                )
                self.sleep(wait)
        return None

    @staticmethod
    def _run_process(
        cmd: List[str], cwd: Optional[Union[str, Path]], input: Optional[str]
    ) -> CommandResult:
        try:
            process = subprocess.run(cmd, cwd=cwd, input=input, text=True)
        except OSError as e:
            raise CommandError(f"Failed to start '{cmd[0]}': {e}", cmd) from e
        if process.returncode != 0:
            raise CommandError(
                f"'{shlex.join(cmd)}' exited with code {process.returncode}",
                cmd,
                process.returncode,
            )
        return CommandResult(cmd, process.returncode)
