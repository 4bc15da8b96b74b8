"""Transfer rate measurement against each candidate mirror."""

import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable

import requests
import urllib3

from .errors import ProbeFailure
from .models import MirrorRecord, TargetRepository
from .status import USER_AGENT

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 10
DEFAULT_THREADS = 5
CHUNK_SIZE = 16 * 1024

PROBE_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept-Encoding": "identity",
}

# Mirrors with self-signed or mismatched certificates are still measured.
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


def probe_url(record: MirrorRecord, target: TargetRepository) -> str:
    base = record.url if record.url.endswith("/") else record.url + "/"
    return base + target.db_path


def no_proxy_get(url: str, **kwargs) -> requests.Response:
    with requests.Session() as session:
        session.trust_env = False
        return session.get(url, **kwargs)


def _download(url: str, http_get: Callable[..., requests.Response], timeout: float) -> float:
    """Stream the body, giving up once ``timeout`` seconds have passed in total.

    The request timeout only bounds the connect and each socket read, so a
    mirror trickling bytes is cut off here instead.
    """
    start = time.monotonic()
    deadline = start + timeout
    try:
        response = http_get(url, headers=PROBE_HEADERS, timeout=timeout, verify=False, stream=True)
    except requests.Timeout:
        raise ProbeFailure(url, f"timed out after {timeout}s") from None
    except requests.RequestException as e:
        raise ProbeFailure(url, f"request failed: {e}") from e

    with response:
        if response.status_code != 200:
            raise ProbeFailure(url, f"HTTP {response.status_code}")
        length = response.headers.get("Content-Length")
        if length is None:
            raise ProbeFailure(url, "response has no Content-Length")
        try:
            expected = int(length)
        except ValueError:
            raise ProbeFailure(url, f"invalid Content-Length {length!r}") from None
        if expected < 0:
            raise ProbeFailure(url, f"invalid Content-Length {length!r}")

        received = 0
        try:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                received += len(chunk)
                if time.monotonic() > deadline:
                    raise ProbeFailure(url, f"timed out after {timeout}s")
        except requests.Timeout:
            raise ProbeFailure(url, f"timed out after {timeout}s") from None
        except requests.RequestException as e:
            raise ProbeFailure(url, f"download failed: {e}") from e

    elapsed = time.monotonic() - start
    if received != expected:
        raise ProbeFailure(url, f"got {received} of {expected} bytes")
    if elapsed <= 0:
        raise ProbeFailure(url, "transfer took no measurable time")
    return received / elapsed


def probe_mirror(
    record: MirrorRecord,
    target: TargetRepository,
    http_get: Callable[..., requests.Response] = no_proxy_get,
    timeout: float = PROBE_TIMEOUT,
) -> float:
    """Download the target database from one mirror and return bytes/second.

    The whole download is capped at ``timeout`` seconds of wall time. Raises
    ProbeFailure on timeouts, connection errors, non-200 responses, responses
    without a valid Content-Length and truncated bodies.
    """
    url = probe_url(record, target)
    result: Future = Future()

    def fetch() -> None:
        try:
            result.set_result(_download(url, http_get, timeout))
        except Exception as e:
            result.set_exception(e)

    # A socket read can block past the deadline; the caller stops waiting then
    # and the daemon thread winds down on its own.
    threading.Thread(target=fetch, name=f"probe-{record.domain}", daemon=True).start()
    try:
        return result.result(timeout=timeout)
    except FutureTimeout:
        raise ProbeFailure(url, f"timed out after {timeout}s") from None


def probe_all(
    mirrors: list[MirrorRecord],
    target: TargetRepository,
    executor: Executor | None = None,
    threads: int = DEFAULT_THREADS,
    http_get: Callable[..., requests.Response] = no_proxy_get,
    timeout: float = PROBE_TIMEOUT,
) -> list[MirrorRecord]:
    """Measure every mirror concurrently, filling in ``transfer_rate`` in place.

    Each task writes only to its own record. A failed probe leaves the rate as
    None and is logged; it never stops the other probes. Returns once every
    probe has finished.
    """
    def run(record: MirrorRecord) -> bool:
        try:
            record.transfer_rate = probe_mirror(record, target, http_get=http_get, timeout=timeout)
        except ProbeFailure as e:
            record.transfer_rate = None
            logger.warning(f"Could not measure {record.url}: {e.reason}")
            return False
        logger.debug(f"{record.url}: {record.transfer_rate / 1e6:.2f} MB/s")
        return True

    if executor is None:
        with ThreadPoolExecutor(max_workers=threads) as pool:
            results = list(pool.map(run, mirrors))
    else:
        results = list(executor.map(run, mirrors))

    logger.info(f"Measured {sum(results)} of {len(mirrors)} mirrors")
    return mirrors
