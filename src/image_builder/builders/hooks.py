"""Discovery and execution of pre-build / post-build hook scripts."""

from __future__ import annotations

import logging
import platform as host
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..errors import CommandError, HookError
from ..execute import CommandExecutor

logger = logging.getLogger(__name__)

HOOKS_DIR = "hooks"
SCRIPT_EXTENSION = ".ps1"

# Script interpreter per host OS (platform.system()); anything else uses the default.
SCRIPT_INTERPRETERS: Dict[str, str] = {"Windows": "PowerShell"}
DEFAULT_SCRIPT_INTERPRETER = "pwsh"


def script_interpreter(system: Optional[str] = None) -> str:
    return SCRIPT_INTERPRETERS.get(system or host.system(), DEFAULT_SCRIPT_INTERPRETER)


class ScriptRunner(ABC):
    """Runs a discovered hook script."""

    def __init__(self, script_path: Path):
        self.script_path = script_path

    @abstractmethod
    def command(self) -> List[str]: ...

    def run(self, executor: CommandExecutor, working_dir: Path) -> None:
        command, *args = self.command()
        try:
            executor.execute(command, args, cwd=working_dir)
        except CommandError as e:
            raise HookError(self.script_path, e) from e


class ExecutableScriptRunner(ScriptRunner):
    """Runs the hook file directly."""

    def command(self) -> List[str]:
        return [str(self.script_path)]


class InterpretedScriptRunner(ScriptRunner):
    """Runs a script hook through the host's script interpreter."""

    def __init__(self, script_path: Path, interpreter: str):
        super().__init__(script_path)
        self.interpreter = interpreter

    def command(self) -> List[str]:
        return [self.interpreter, "-NoProfile", "-File", str(self.script_path)]


class HookInvoker:
    """Finds and runs ``<build context>/hooks/<name>[.ps1]``."""

    def __init__(self, executor: CommandExecutor, interpreter: Optional[str] = None):
        self.executor = executor
        self.interpreter = interpreter or script_interpreter()

    def discover(self, hook_name: str, build_context_path: Union[str, Path]) -> Optional[ScriptRunner]:
        hooks_dir = (Path(build_context_path) / HOOKS_DIR).resolve()
        if not hooks_dir.is_dir():
            return None

        script_path = hooks_dir / hook_name
        if script_path.is_file():
            return ExecutableScriptRunner(script_path)

        script_path = script_path.with_suffix(SCRIPT_EXTENSION)
        if script_path.is_file():
            return InterpretedScriptRunner(script_path, self.interpreter)
        return None

    def invoke(self, hook_name: str, build_context_path: Union[str, Path]) -> None:
        runner = self.discover(hook_name, build_context_path)
        if runner is None:
            return
        logger.info("Running %s hook: %s", hook_name, runner.script_path)
        runner.run(self.executor, Path(build_context_path))
