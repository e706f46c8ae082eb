"""AWS Signature Version 4 request signing.

The signer turns credentials and a description of an HTTP request into
the value of the ``Authorization`` header:

1. canonical request (method, URI, query, headers, signed headers,
   payload hash)
2. string to sign (algorithm, timestamp, credential scope, hash of the
   canonical request)
3. signing key derived from the secret key through an HMAC chain
4. signature = HMAC(signing key, string to sign)

Everything here is a pure function of its arguments: nothing is cached
between calls and the caller's header mapping is never modified.

See https://docs.aws.amazon.com/AmazonS3/latest/API/sig-v4-header-based-auth.html
"""
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import unquote_to_bytes

from .amzdate import current_timestamp, format_amz_datetime, validate_timestamp
from .errors import (
    AllocationFailure,
    HeaderMismatch,
    InvalidHeaders,
    MalformedPath,
    MissingRequiredHeader,
)

logger = logging.getLogger(__name__)

ALGORITHM = 'AWS4-HMAC-SHA256'
TERMINATOR = 'aws4_request'
EMPTY_SHA256 = 'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
UNSIGNED_PAYLOAD = 'UNSIGNED-PAYLOAD'

REQUIRED_HEADERS = ('host', 'x-amz-content-sha256', 'x-amz-date')

_UNRESERVED = frozenset(
    b'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~'
)


@dataclass(frozen=True)
class Credentials:
    access_key: str
    secret_key: str
    region: str
    service: str = 's3'

    def __repr__(self):
        return (f"Credentials(access_key={self.access_key!r}, secret_key='***', "
                f"region={self.region!r}, service={self.service!r})")


@dataclass(frozen=True)
class SigningParams:
    method: str
    # request path, optionally followed by ?query
    path: str
    headers: Mapping[str, str]
    body: Optional[bytes] = None
    # seconds since the epoch; None means "now", resolved once per call
    timestamp: Optional[int] = None
    # precomputed payload hash (or UNSIGNED-PAYLOAD); None hashes body
    payload_hash: Optional[str] = None


# ---------------------------------------------------------------------------
# Payload
# ---------------------------------------------------------------------------


def hash_payload(body: Optional[bytes] = None) -> str:
    """Lowercase hex SHA-256 of the body, or of b'' when there is none."""
    if body is None:
        body = b''
    elif isinstance(body, str):
        body = body.encode('utf-8')
    return hashlib.sha256(body).hexdigest()


# ---------------------------------------------------------------------------
# Canonical request
# ---------------------------------------------------------------------------


def _encode_bytes(data: bytes, safe: bytes = b'') -> str:
    return ''.join(
        chr(b) if b in _UNRESERVED or b in safe else f"%{b:02X}" for b in data
    )


def uri_encode(value: str, encode_slash: bool = True) -> str:
    """Percent-encode everything except A-Z a-z 0-9 - _ . ~ (uppercase hex).

    Non-ASCII characters are encoded byte by byte from their UTF-8 form.
    """
    return _encode_bytes(value.encode('utf-8'), b'' if encode_slash else b'/')


def split_path(path: str) -> tuple:
    path, _, query = path.partition('?')
    return path, query


def canonical_uri(path: str) -> str:
    """Normalize and encode the path part of a request URI.

    The raw path is split on ``/`` before any decoding, so ``%2F`` stays
    inside its segment. Each segment is decoded to bytes and re-encoded.
    Dot segments are resolved, empty segments and a trailing slash are kept.
    Raises MalformedPath when ``..`` climbs above the root.
    """
    path, _ = split_path(path)
    if not path:
        return '/'
    segments = [unquote_to_bytes(s) for s in path.split('/')]
    absolute = segments[0] == b''
    if absolute:
        segments = segments[1:]

    resolved = []
    for i, segment in enumerate(segments):
        last = i == len(segments) - 1
        if segment == b'.':
            if last:
                resolved.append(b'')
            continue
        if segment == b'..':
            if not resolved:
                raise MalformedPath(f"Path '{path}' climbs above the root")
            resolved.pop()
            if last:
                resolved.append(b'')
            continue
        resolved.append(segment)

    return '/' + '/'.join(_encode_bytes(s) for s in resolved)


def canonical_query_string(path: str) -> str:
    """Sorted, encoded ``k=v&...`` form of the query in ``path``.

    ``path`` may be a full request path (``/key?a=1``) or a bare query
    starting with ``?``.
    """
    _, query = split_path(path)
    if not query:
        return ''
    pairs = []
    for part in query.split('&'):
        if not part:
            continue
        key, _, value = part.partition('=')
        pairs.append((_encode_bytes(unquote_to_bytes(key)),
                      _encode_bytes(unquote_to_bytes(value))))
    pairs.sort()
    return '&'.join(f"{k}={v}" for k, v in pairs)


def canonical_headers(headers: Mapping[str, str]) -> tuple:
    """Return (canonical header block, signed header list).

    Entries are collected and sorted by lower-cased name; the mapping's
    iteration order never leaks into the output.
    """
    entries = {}
    for name, value in headers.items():
        lname = name.strip().lower()
        if lname in entries:
            raise InvalidHeaders(f"Header '{lname}' is supplied more than once")
        if not isinstance(value, str):
            raise InvalidHeaders(
                f"Header '{lname}' must have a string value, got {type(value).__name__}"
            )
        entries[lname] = ' '.join(value.split())

    names = sorted(entries)
    block = ''.join(f"{name}:{entries[name]}\n" for name in names)
    return block, ';'.join(names)


def build_canonical_request(method: str, path: str, headers: Mapping[str, str],
                            payload_hash: str) -> tuple:
    """Return (canonical request, signed headers)."""
    header_block, signed_headers = canonical_headers(headers)
    canonical = '\n'.join([
        method.upper(),
        canonical_uri(path),
        canonical_query_string(path),
        header_block,
        signed_headers,
        payload_hash,
    ])
    return canonical, signed_headers


# ---------------------------------------------------------------------------
# String to sign, key derivation, signature
# ---------------------------------------------------------------------------


def credential_scope(date: str, region: str, service: str) -> str:
    return f"{date}/{region}/{service}/{TERMINATOR}"


def build_string_to_sign(amz_datetime: str, scope: str, canonical_request: str) -> str:
    digest = hashlib.sha256(canonical_request.encode('utf-8')).hexdigest()
    return '\n'.join([ALGORITHM, amz_datetime, scope, digest])


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode('utf-8'), hashlib.sha256).digest()


def derive_signing_key(secret_key: str, date: str, region: str, service: str) -> bytes:
    """HMAC chain secret -> date -> region -> service -> "aws4_request".

    Every intermediate key stays raw bytes; hex-encoding one breaks the chain.
    """
    k_date = _hmac_sha256(('AWS4' + secret_key).encode('utf-8'), date)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, service)
    return _hmac_sha256(k_service, TERMINATOR)


def calculate_signature(signing_key: bytes, string_to_sign: str) -> str:
    return hmac.new(signing_key, string_to_sign.encode('utf-8'), hashlib.sha256).hexdigest()


def build_authorization_header(access_key: str, scope: str, signed_headers: str,
                               signature: str) -> str:
    return (f"{ALGORITHM} Credential={access_key}/{scope}, "
            f"SignedHeaders={signed_headers}, Signature={signature}")


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def build_signing_headers(host: str, timestamp: int, body: Optional[bytes] = None,
                          payload_hash: Optional[str] = None) -> dict:
    """The three companion headers every signed request must carry.

    Both time-dependent values come from the one ``timestamp`` and the
    payload hash is computed once, so they agree with what ``sign_request``
    puts into the signature.
    """
    if payload_hash is None:
        payload_hash = hash_payload(body)
    return {
        'host': host,
        'x-amz-date': format_amz_datetime(timestamp),
        'x-amz-content-sha256': payload_hash,
    }


def _check_required_headers(headers: Mapping[str, str], amz_datetime: str,
                            payload_hash: str) -> None:
    lowered = {name.strip().lower(): str(value).strip() for name, value in headers.items()}
    for name in REQUIRED_HEADERS:
        if name not in lowered:
            raise MissingRequiredHeader(name)
    date_value = lowered['x-amz-date']
    if date_value != amz_datetime:
        raise HeaderMismatch('x-amz-date', amz_datetime, date_value)
    hash_value = lowered['x-amz-content-sha256']
    if hash_value != payload_hash:
        raise HeaderMismatch('x-amz-content-sha256', payload_hash, hash_value)


def sign_request(credentials: Credentials, params: SigningParams) -> str:
    """Compute the Authorization header value for a request.

    Raises a SigningError subclass when the request cannot be signed.
    """
    try:
        timestamp = params.timestamp
        if timestamp is None:
            timestamp = current_timestamp()
        validate_timestamp(timestamp)
        amz_datetime = format_amz_datetime(timestamp)
        date = amz_datetime[:8]

        payload_hash = params.payload_hash
        if payload_hash is None:
            payload_hash = hash_payload(params.body)

        canonical_request, signed_headers = build_canonical_request(
            params.method, params.path, params.headers, payload_hash
        )
        _check_required_headers(params.headers, amz_datetime, payload_hash)
        logger.debug('CanonicalRequest:\n%s', canonical_request)

        scope = credential_scope(date, credentials.region, credentials.service)
        string_to_sign = build_string_to_sign(amz_datetime, scope, canonical_request)
        logger.debug('StringToSign:\n%s', string_to_sign)

        signing_key = derive_signing_key(
            credentials.secret_key, date, credentials.region, credentials.service
        )
        signature = calculate_signature(signing_key, string_to_sign)
        return build_authorization_header(
            credentials.access_key, scope, signed_headers, signature
        )
    except MemoryError as e:
        raise AllocationFailure('Out of memory while signing request') from e


def sign(credentials: Credentials, method: str, path: str, headers: Mapping[str, str],
         body: Optional[bytes] = None, timestamp: Optional[int] = None) -> str:
    """Sign a request described by its parts. See ``sign_request``."""
    return sign_request(credentials, SigningParams(
        method=method, path=path, headers=headers, body=body, timestamp=timestamp
    ))
