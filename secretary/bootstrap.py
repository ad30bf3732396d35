"""
Make sure mise is available, then hand the process over to a command.
"""

import logging
import os
import shutil
import subprocess
import typing

import attr

from .config import BootstrapConfig
from .releases import Downloader
from .utils import SecretaryException, ToolError

log = logging.getLogger(__name__)

MISE = 'mise'


@attr.s(frozen=True)
class Bootstrap:
    config: BootstrapConfig = attr.ib()
    downloader: Downloader = attr.ib(factory=Downloader)

    def installed(self) -> typing.Optional[str]:
        return shutil.which(MISE)

    def install_environment(self) -> typing.Dict[str, str]:
        return {
            **os.environ,
            'MISE_INSTALL_PATH': str(self.config.mise_binary),
            'MISE_VERSION': self.config.mise_version,
            'MISE_INSTALL_HELP': '0',
            'MISE_QUIET': '1',
        }

    def install(self) -> None:
        log.info("Installing MISE...")
        script = self.downloader.fetch(self.config.install_url)
        self.config.bin_dir.mkdir(parents=True, exist_ok=True)

        command = ('sh',)
        try:
            subprocess.run(
                command,
                input=script,
                env=self.install_environment(),
                check=True)
        except subprocess.CalledProcessError as error:
            raise ToolError(command, error.returncode) from error

        log.info(f"MISE installed at {self.config.mise_binary}")
        version = (str(self.config.mise_binary), '--version')
        try:
            subprocess.run(version, check=True)
        except subprocess.CalledProcessError as error:
            raise ToolError(version, error.returncode) from error

    def ensure(self) -> None:
        path = os.environ.get('PATH', '')
        os.environ['PATH'] = os.pathsep.join(
            p for p in (str(self.config.bin_dir), path) if p)

        if self.installed():
            log.debug(f"Found {MISE} at {self.installed()}")
            return
        self.install()

    def exec(self, arguments: typing.Sequence[str]) -> typing.NoReturn:
        """Replace the current process; this never returns."""
        command = tuple(arguments) or self.config.default_command
        if not command:
            raise SecretaryException("No command to execute")
        log.debug(f"Executing {' '.join(command)}")
        try:
            os.execvp(command[0], command)
        except OSError as error:
            raise SecretaryException(
                f"Could not execute {command[0]}: {error.strerror}") from error
