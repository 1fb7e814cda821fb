"""Identity scopes the push phase runs under."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from .errors import CommandError
from .execute import CommandExecutor

logger = logging.getLogger(__name__)


class Identity:
    """Runs a block of work as the configured user. The base class has no user."""

    @contextmanager
    def run_as(self) -> Iterator[None]:
        yield


class DockerLoginIdentity(Identity):
    """Logs in to a registry for the duration of the block and logs out afterwards."""

    def __init__(self, executor: CommandExecutor, registry: Optional[str], username: str, password: str):
        self.executor = executor
        self.registry = registry
        self.username = username
        self.password = password

    def _server_args(self):
        return [self.registry] if self.registry else []

    @contextmanager
    def run_as(self) -> Iterator[None]:
        logger.info("Logging in to %s as %s", self.registry or "the default registry", self.username)
        self.executor.execute_with_retry(
            "docker",
            ["login", *self._server_args(), "-u", self.username, "--password-stdin"],
            input=self.password,
        )
        try:
            yield
        except BaseException:
            # A logout failure is logged so the error from the block propagates.
            try:
                self._logout()
            except CommandError as e:
                logger.error("Logout failed: %s", e)
            raise
        self._logout()

    def _logout(self) -> None:
        self.executor.execute("docker", ["logout", *self._server_args()])
