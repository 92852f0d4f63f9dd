"""Document source: resolve locators and decode manifest streams.

A locator is a local filesystem path, a ``file://`` URI or an
``http(s)://`` URL. Its content is decoded with ruamel.yaml, which reads
multi-document YAML streams as well as JSON (a single object or an array of
objects). Empty documents are skipped.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

import httpx
from ruamel.yaml import YAML, YAMLError

from kubeapply.core.errors import DecodeError, LocatorError
from kubeapply.core.schema.document import Document

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("http", "https")
MANIFEST_SUFFIXES = (".yaml", ".yml", ".json")
FETCH_TIMEOUT = 30.0


def _create_yaml_instance() -> YAML:
    """Create a ruamel.yaml loader for manifest decoding.

    Returns:
        YAML instance using the safe loader, so decoded documents are plain
        dicts, lists and scalars with key order preserved
    """
    return YAML(typ="safe", pure=True)


def _file_uri_path(locator: str) -> Path:
    parsed = urlparse(locator)
    if parsed.netloc not in ("", "localhost"):
        raise LocatorError(f"Unsupported file URI host: {parsed.netloc!r}", locator=locator)
    return Path(url2pathname(unquote(parsed.path)))


def _read_path(path: Path, locator: str) -> List[bytes]:
    if not path.exists():
        raise LocatorError(f"Path does not exist: {path}", locator=locator)
    try:
        if path.is_dir():
            # Directories expand to their manifest files in name order
            files = sorted(
                p for p in path.iterdir()
                if p.is_file() and p.suffix.lower() in MANIFEST_SUFFIXES
            )
            return [p.read_bytes() for p in files]
        return [path.read_bytes()]
    except OSError as e:
        raise LocatorError(f"Cannot read {path}: {e}", locator=locator) from e


def _fetch(locator: str, client: Optional[httpx.Client]) -> bytes:
    try:
        if client is not None:
            response = client.get(locator, follow_redirects=True)
        else:
            response = httpx.get(locator, follow_redirects=True, timeout=FETCH_TIMEOUT)
    except httpx.HTTPError as e:
        raise LocatorError(f"Failed to fetch {locator}: {e}", locator=locator) from e
    if not response.is_success:
        raise LocatorError(
            f"Failed to fetch {locator}: HTTP {response.status_code}", locator=locator
        )
    return response.content


def open_locator(locator: str, client: Optional[httpx.Client] = None) -> List[bytes]:
    """Read the raw content behind ``locator``.

    Args:
        locator: Local path, ``file://`` URI or ``http(s)://`` URL
        client: Optional httpx client used for remote URLs

    Returns:
        One byte string per underlying file (a directory yields several)

    Raises:
        LocatorError: If the scheme is unrecognized, the path does not exist
            or a remote fetch fails
    """
    if not locator or not locator.strip():
        raise LocatorError("Empty locator", locator=locator)

    locator = locator.strip()
    if "://" in locator:
        scheme = locator.split("://", 1)[0].lower()
        if scheme == "file":
            return _read_path(_file_uri_path(locator), locator)
        if scheme in REMOTE_SCHEMES:
            return [_fetch(locator, client)]
        raise LocatorError(f"Unsupported URI scheme: {scheme!r}", locator=locator)

    return _read_path(Path(locator).expanduser(), locator)


def _flatten(value: Any, locator: Optional[str]) -> Iterable[dict]:
    if value is None:
        return []
    if isinstance(value, dict):
        return [value] if value else []
    if isinstance(value, list):
        items = []
        for index, item in enumerate(value):
            if item is None:
                continue
            if not isinstance(item, dict):
                raise DecodeError(
                    f"Array element {index} is not a mapping: {type(item).__name__}",
                    locator=locator,
                )
            if item:
                items.append(item)
        return items
    raise DecodeError(
        f"Document is not a mapping: {type(value).__name__}", locator=locator
    )


def decode_documents(data: bytes, locator: Optional[str] = None) -> List[Document]:
    """Decode a byte stream into documents.

    Args:
        data: Raw manifest content (UTF-8, optional BOM)
        locator: Source of the content, for error messages

    Returns:
        Non-empty documents in stream order

    Raises:
        DecodeError: If the content is not UTF-8 or not structured data
    """
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Content is not valid UTF-8: {e}", locator=locator) from e

    raw_docs = None
    if text.lstrip().startswith(("{", "[")):
        # JSON allows tab indentation, which the YAML scanner rejects
        try:
            raw_docs = [json.loads(text)]
        except json.JSONDecodeError:
            raw_docs = None

    if raw_docs is None:
        yaml = _create_yaml_instance()
        try:
            raw_docs = list(yaml.load_all(text))
        except YAMLError as e:
            raise DecodeError(f"Failed to parse {locator or 'content'}: {e}", locator=locator) from e

    documents = []
    for raw in raw_docs:
        documents.extend(Document(body) for body in _flatten(raw, locator))
    return documents


def load(locator: str, client: Optional[httpx.Client] = None) -> List[Document]:
    """Resolve ``locator`` and decode every document it holds.

    Safe to call repeatedly for the same locator; nothing is cached.

    Raises:
        LocatorError: If the locator cannot be opened
        DecodeError: If the content cannot be decoded
    """
    documents: List[Document] = []
    for data in open_locator(locator, client=client):
        documents.extend(decode_documents(data, locator))
    logger.debug(f"Loaded {len(documents)} document(s) from {locator}")
    return documents
