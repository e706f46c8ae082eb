import xml.etree.ElementTree as ET


class S3Error(Exception):
    """Base class for every error raised by s3client."""


class ConfigError(S3Error, ValueError):
    pass


# Signing


class SigningError(S3Error):
    """A request could not be signed. The request must not be sent."""


class AllocationFailure(SigningError):
    pass


class InvalidTimestamp(SigningError, ValueError):
    pass


class MalformedPath(SigningError, ValueError):
    pass


class InvalidHeaders(SigningError, ValueError):
    pass


class MissingRequiredHeader(SigningError):
    def __init__(self, header: str):
        super().__init__(f"Required header '{header}' is missing")
        self.header = header


class HeaderMismatch(SigningError):
    def __init__(self, header: str, expected: str, actual: str):
        super().__init__(
            f"Header '{header}' is '{actual}' but the signature uses '{expected}'"
        )
        self.header = header
        self.expected = expected
        self.actual = actual


# Service / transport


class InvalidCredentials(S3Error):
    pass


class ConnectionFailed(S3Error):
    pass


class BucketNotFound(S3Error):
    pass


class ObjectNotFound(S3Error):
    pass


class InvalidBucketName(S3Error, ValueError):
    pass


class InvalidObjectKey(S3Error, ValueError):
    pass


class InvalidListOptions(S3Error, ValueError):
    pass


class InvalidResponse(S3Error):
    def __init__(self, message: str, status_code: int = None, code: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


def parse_error_body(text: str) -> tuple:
    """Return (Code, Message) from an S3 XML error document, or (None, None)."""
    if not text:
        return None, None
    try:
        root = ET.fromstring(text)
    except ET.ParseError:
        return None, None
    code_el = root.find('Code')
    msg_el = root.find('Message')
    return (
        code_el.text if code_el is not None else None,
        msg_el.text if msg_el is not None else None,
    )


def raise_for_s3_status(resp, not_found=BucketNotFound, resource: str = '') -> None:
    """Map a non-2xx response to the matching S3Error.

    404 raises ``not_found`` unless the service says otherwise through its
    error ``Code`` (``NoSuchBucket`` / ``NoSuchKey``).
    """
    status = resp.status_code
    if 200 <= status < 300:
        return
    code, message = parse_error_body(resp.text)
    detail = message or code or resp.reason or 'no details'
    if status in (401, 403):
        raise InvalidCredentials(f"Access denied for {resource or 'request'}: {detail}")
    if status == 404:
        if code == 'NoSuchBucket':
            not_found = BucketNotFound
        elif code == 'NoSuchKey':
            not_found = ObjectNotFound
        raise not_found(f"{resource or 'Resource'} not found: {detail}")
    raise InvalidResponse(
        f"Unexpected status {status} for {resource or 'request'}: {detail}",
        status_code=status,
        code=code,
    )
