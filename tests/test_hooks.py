import os
import stat
import pytest
from image_builder.builders.hooks import (
    ExecutableScriptRunner,
    HookInvoker,
    InterpretedScriptRunner,
    script_interpreter,
)
from image_builder.errors import CommandError, HookError
from image_builder.execute import CommandExecutor

def make_hook(context, name, content="#!/bin/sh\nexit 0\n"):
    hooks = context / "hooks"
    hooks.mkdir(exist_ok=True)
    script = hooks / name
    script.write_text(content)
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return script

def test_script_interpreter():
    assert script_interpreter("Windows") == "PowerShell"
    assert script_interpreter("Linux") == "pwsh"
    assert script_interpreter("Darwin") == "pwsh"

def test_no_hooks_dir(tmp_path, mocker):
    executor = mocker.MagicMock(spec=CommandExecutor)
    HookInvoker(executor).invoke("pre-build", tmp_path)
    executor.execute.assert_not_called()

def test_missing_hook(tmp_path, mocker):
    make_hook(tmp_path, "post-build")
    executor = mocker.MagicMock(spec=CommandExecutor)

    HookInvoker(executor).invoke("pre-build", tmp_path)
    executor.execute.assert_not_called()

def test_executable_hook(tmp_path, mocker):
    script = make_hook(tmp_path, "pre-build")
    executor = mocker.MagicMock(spec=CommandExecutor)

    invoker = HookInvoker(executor)
    assert isinstance(invoker.discover("pre-build", tmp_path), ExecutableScriptRunner)
    invoker.invoke("pre-build", tmp_path)

    executor.execute.assert_called_once_with(str(script.resolve()), [], cwd=tmp_path)

def test_script_hook_uses_interpreter(tmp_path, mocker):
    script = make_hook(tmp_path, "pre-build.ps1", "Write-Host hi")
    executor = mocker.MagicMock(spec=CommandExecutor)

    invoker = HookInvoker(executor, interpreter="pwsh")
    assert isinstance(invoker.discover("pre-build", tmp_path), InterpretedScriptRunner)
    invoker.invoke("pre-build", tmp_path)

    executor.execute.assert_called_once_with(
        "pwsh", ["-NoProfile", "-File", str(script.resolve())], cwd=tmp_path
    )

def test_hook_failure_carries_script_path(tmp_path, mocker):
    script = make_hook(tmp_path, "post-build")
    executor = mocker.MagicMock(spec=CommandExecutor)
    executor.execute.side_effect = CommandError("exited with code 3", exit_code=3)

    with pytest.raises(HookError) as excinfo:
        HookInvoker(executor).invoke("post-build", tmp_path)

    assert excinfo.value.script_path == script.resolve()
    assert excinfo.value.cause.exit_code == 3

@pytest.mark.skipif(os.name != "posix", reason="requires a POSIX shell")
def test_hook_runs_in_build_context(tmp_path):
    make_hook(tmp_path, "pre-build", "#!/bin/sh\ntouch marker\n")
    make_hook(tmp_path, "post-build", "#!/bin/sh\nexit 2\n")
    invoker = HookInvoker(CommandExecutor())

    invoker.invoke("pre-build", tmp_path)
    assert (tmp_path / "marker").exists()

    with pytest.raises(HookError, match="post-build"):
        invoker.invoke("post-build", tmp_path)
