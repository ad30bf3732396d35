import io
import pathlib
import sys
import tarfile
import typing

import attr
import click.testing
import httpx
import pytest

import secretary.cli
from secretary.config import Config
from secretary.releases import Downloader, age_release

ROOT = pathlib.Path(__file__).parent
FAKES = ROOT / 'fakes'


def fake_tool(name: str) -> bytes:
    """An executable script that behaves enough like the real tool."""
    source = (FAKES / f'{name}.py').read_text()
    return f'#!{sys.executable}\n{source}'.encode()


def age_tarball(member: str = 'age/age-keygen') -> bytes:
    content = fake_tool('age_keygen')
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode='w:gz') as tar:
        info = tarfile.TarInfo(member)
        info.size = len(content)
        info.mode = 0o755
        tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


@attr.s()
class FakeServer:
    """Serves canned responses and records every requested URL."""
    responses: typing.Dict[str, httpx.Response] = attr.ib(factory=dict)
    requests: typing.List[str] = attr.ib(factory=list)

    def handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        return self.responses.get(url, httpx.Response(404))

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handle))


@pytest.fixture()
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture()
def config(tmp_path) -> Config:
    return Config.from_root(tmp_path)


@pytest.fixture()
def downloader(server) -> Downloader:
    return Downloader(server.client())


@pytest.fixture()
def tools(config):
    """Place the fake tools in the binary cache so nothing is downloaded."""
    config.bin_dir.mkdir(parents=True, exist_ok=True)
    for path, name in [
            (config.sops_binary, 'sops'),
            (config.age_keygen_binary, 'age_keygen')]:
        path.write_bytes(fake_tool(name))
        path.chmod(0o755)
    return config


@pytest.fixture()
def calls(config) -> typing.Callable[[], typing.List[str]]:
    """Invocations of the fake tools, in order."""
    def calls_func():
        log = config.bin_dir / 'calls.log'
        return log.read_text().splitlines() if log.exists() else []
    return calls_func


@pytest.fixture()
def invoke(monkeypatch, config, downloader):
    monkeypatch.setattr(secretary.cli, 'Downloader', lambda: downloader)

    def invoke_func(
            arguments: typing.Sequence[str],
            env: typing.Optional[typing.Mapping[str, str]] = None) -> click.testing.Result:
        assert all(isinstance(arg, str) for arg in arguments)
        runner = click.testing.CliRunner()
        return runner.invoke(
            secretary.cli.main, ['-p', str(config.root), *arguments], env=env)

    return invoke_func


@pytest.fixture()
def age_archive(server, config):
    """Publish a release tarball for age at its download URL."""
    url = age_release(config).url
    server.responses[url] = httpx.Response(200, content=age_tarball())
    return url
