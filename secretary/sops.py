import logging
import os
import pathlib
import subprocess
import typing

import attr

from .utils import ToolError

log = logging.getLogger(__name__)

KEY_FILE_VARIABLE = 'SOPS_AGE_KEY_FILE'


@attr.s(frozen=True)
class Sops:
    binary: pathlib.Path = attr.ib()
    key_file: pathlib.Path = attr.ib()
    verbose: bool = attr.ib(default=False)

    def command(self, arguments: typing.Sequence[str]) -> typing.Tuple[str, ...]:
        return (str(self.binary), *arguments)

    def environment(self) -> typing.Dict[str, str]:
        return {**os.environ, KEY_FILE_VARIABLE: str(self.key_file)}

    def run(self, arguments: typing.Sequence[str]) -> subprocess.CompletedProcess:
        command = self.command(arguments)
        log.debug(f"Running {' '.join(command)}")
        try:
            result = subprocess.run(
                command,
                encoding='utf-8',
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=self.environment(),
                check=True)
        except subprocess.CalledProcessError as error:
            for line in error.stderr.splitlines():
                log.error(line)
            raise ToolError(command, error.returncode) from error

        if self.verbose:
            for line in result.stderr.splitlines():
                log.info(line)
        return result

    def encrypt(
            self,
            plaintext: pathlib.Path,
            encrypted: pathlib.Path) -> subprocess.CompletedProcess:
        log.debug(f"Encrypting {plaintext} to {encrypted}")
        return self.run([
            'encrypt', str(plaintext),
            '--output', str(encrypted),
            '--input-type', 'dotenv',
            '--output-type', 'yaml',
        ])

    def decrypt(
            self,
            encrypted: pathlib.Path,
            plaintext: pathlib.Path) -> subprocess.CompletedProcess:
        log.debug(f"Decrypting {encrypted} to {plaintext}")
        return self.run([
            'decrypt', str(encrypted),
            '--output', str(plaintext),
            '--output-type', 'dotenv',
        ])
