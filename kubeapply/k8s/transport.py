"""HTTP transport for the resource API.

Thin wrapper around an ``httpx.Client`` that signs every request with a
bearer token. It knows nothing about kinds, namespaces or reconciliation;
it only sends a request and returns the status code and body.
"""

import logging
import ssl
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import httpx

from kubeapply.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class HttpResponse:
    """Status code and fully read body of one exchange."""
    status_code: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def read_token(token_file: str) -> str:
    """Read a bearer token from ``token_file``, stripping whitespace.

    Raises:
        ConfigurationError: If the file cannot be read or is blank
    """
    try:
        token = Path(token_file).read_text(encoding="utf-8").strip()
    except OSError as e:
        raise ConfigurationError(f"Cannot read token file {token_file}: {e}") from e
    if not token:
        raise ConfigurationError(f"Token file {token_file} is empty")
    return token


def build_client(
    ca_cert: Optional[str] = None,
    insecure: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
) -> httpx.Client:
    """Create the trusted HTTP client used to talk to the API server.

    Args:
        ca_cert: Path to a PEM CA bundle that signs the API server certificate
        insecure: Skip certificate verification entirely (testing only)
        timeout: Per-request timeout in seconds

    Returns:
        Configured httpx.Client; the caller owns and closes it

    Raises:
        ConfigurationError: If the CA bundle cannot be loaded
    """
    verify: object = True
    if insecure:
        logger.warning("TLS verification disabled")
        verify = False
    elif ca_cert:
        try:
            verify = ssl.create_default_context(cafile=ca_cert)
        except (OSError, ssl.SSLError) as e:
            raise ConfigurationError(f"Cannot load CA bundle {ca_cert}: {e}") from e
    return httpx.Client(verify=verify, timeout=timeout)


class KubeTransport:
    """Bearer-token signed requests against the API server.

    Example:
        >>> transport = KubeTransport(build_client(), token="abc")
        >>> response = transport.delete("https://api:6443/api/v1/namespaces/demo")
        >>> response.status_code
        200
    """

    def __init__(self, client: httpx.Client, token: str):
        self.client = client
        self.token = token.strip()

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def request(self, method: str, url: str, body: Optional[str] = None) -> HttpResponse:
        """Send one request and return its status and body.

        Raises:
            httpx.HTTPError: On network failures; these are not retried
        """
        logger.debug(f"{method} {url}")
        response = self.client.request(
            method,
            url,
            content=body.encode("utf-8") if body is not None else None,
            headers=self.headers,
        )
        # Non-streaming requests are read and closed by httpx before returning
        return HttpResponse(status_code=response.status_code, body=response.text)

    def get(self, url: str) -> HttpResponse:
        return self.request("GET", url)

    def post(self, url: str, body: str) -> HttpResponse:
        return self.request("POST", url, body)

    def put(self, url: str, body: str) -> HttpResponse:
        return self.request("PUT", url, body)

    def delete(self, url: str) -> HttpResponse:
        return self.request("DELETE", url)
