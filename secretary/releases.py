"""
Download pinned releases of sops and age-keygen into the binary cache.

A binary that already exists in the cache is used as-is.
"""

import io
import logging
import pathlib
import tarfile
import typing

import attr
import httpx

from .config import Config
from .utils import DownloadError

log = logging.getLogger(__name__)

SOPS_DOWNLOAD_URL = 'https://github.com/getsops/sops/releases/download'
AGE_DOWNLOAD_URL = 'https://github.com/FiloSottile/age/releases/download'
AGE_KEYGEN_MEMBER = 'age/age-keygen'

TIMEOUT = httpx.Timeout(60.0)


@attr.s(frozen=True)
class Release:
    name: str = attr.ib()
    version: str = attr.ib()
    url: str = attr.ib()

    def __str__(self):
        return f"{self.name} {self.version}"


def sops_release(config: Config) -> Release:
    filename = config.sops_binary.name
    return Release(
        name='sops',
        version=config.sops_version,
        url=f'{SOPS_DOWNLOAD_URL}/{config.sops_version}/{filename}')


def age_release(config: Config) -> Release:
    v = config.age_version
    return Release(
        name='age',
        version=v,
        url=f'{AGE_DOWNLOAD_URL}/{v}/age-{v}-{config.platform}-{config.arch}.tar.gz')


def http_client() -> httpx.Client:
    return httpx.Client(follow_redirects=True, timeout=TIMEOUT)


def fetch(client: httpx.Client, url: str) -> bytes:
    log.debug(f"Fetching {url}")
    try:
        response = client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as error:
        raise DownloadError(f"Failed to download {url}: {error}") from error
    return response.content


def extract_member(archive: bytes, member: str) -> bytes:
    """Read a single file out of a gzipped tarball."""
    try:
        with tarfile.open(fileobj=io.BytesIO(archive), mode='r:gz') as tar:
            extracted = tar.extractfile(member)
            if extracted is None:
                raise DownloadError(f"Archive member {member} is not a file")
            return extracted.read()
    except KeyError as error:
        raise DownloadError(f"Archive does not contain {member}") from error
    except tarfile.TarError as error:
        raise DownloadError(f"Could not read archive: {error}") from error


def install(target: pathlib.Path, content: bytes) -> pathlib.Path:
    """Write an executable into the cache; the target only appears once complete."""
    target.parent.mkdir(parents=True, exist_ok=True)
    partial = target.with_name(f'{target.name}.part')
    try:
        partial.write_bytes(content)
        partial.chmod(0o755)
        partial.replace(target)
    finally:
        if partial.exists():
            partial.unlink()
    return target


@attr.s(frozen=True)
class Downloader:
    """
    Fetches release assets.

    Without a client, one is created for each request and closed afterwards,
    so nothing is opened when every binary is already cached.
    """
    client: typing.Optional[httpx.Client] = attr.ib(default=None)

    def fetch(self, url: str) -> bytes:
        if self.client is not None:
            return fetch(self.client, url)
        with http_client() as client:
            return fetch(client, url)

    def ensure_sops(self, config: Config) -> pathlib.Path:
        target = config.sops_binary
        if target.exists():
            log.debug(f"Using cached sops binary {target}")
            return target

        release = sops_release(config)
        log.info(f"Downloading SOPS version {release.version} "
                 f"for {config.platform}-{config.arch}...")
        install(target, self.fetch(release.url))
        log.info(f"SOPS downloaded and installed at {target}")
        return target

    def ensure_age_keygen(self, config: Config) -> pathlib.Path:
        target = config.age_keygen_binary
        if target.exists():
            log.debug(f"Using cached age-keygen binary {target}")
            return target

        release = age_release(config)
        log.info(f"Downloading AGE keygen version {release.version} "
                 f"for {config.platform}-{config.arch}...")
        archive = self.fetch(release.url)
        install(target, extract_member(archive, AGE_KEYGEN_MEMBER))
        log.info(f"AGE keygen downloaded and installed at {target}")
        return target
