"""
Error Fingerprinting

Derives a stable grouping key from an error's title, message and stack shape,
so that recurring errors collapse into one issue.

Usage:
    from app.services.fingerprint import generate_fingerprint

    key = generate_fingerprint('TypeError', "'NoneType' object is not subscriptable", stack)
"""
import hashlib
import re
from typing import Optional

from app.constants import (
    FINGERPRINT_LENGTH, FINGERPRINT_MAX_LENGTH,
    FINGERPRINT_MESSAGE_CHARS, FINGERPRINT_STACK_FRAMES
)
from app.exceptions import InvalidInputError

SEPARATOR = '\x1f'

# Dynamic fragments that differ between occurrences of the same error
_HEX_ADDRESS = re.compile(r'0x[0-9a-fA-F]+')
_UUID = re.compile(r'\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\b')
_WHITESPACE = re.compile(r'\s+')

# Line/column positions in Python and JavaScript style frames
_PY_LINE = re.compile(r'\bline \d+')
_JS_POSITION = re.compile(r':\d+(?::\d+)?(?=\)?$)')


def _require_text(name: str, value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{name} must be a non-empty string", details={'field': name})
    return value


def _scrub(text: str) -> str:
    text = _UUID.sub('<uuid>', text)
    text = _HEX_ADDRESS.sub('0x?', text)
    return _WHITESPACE.sub(' ', text).strip()


def normalize_message(message: str) -> str:
    """First line of the message, scrubbed and truncated"""
    first_line = message.strip().split('\n')[0]
    return _scrub(first_line)[:FINGERPRINT_MESSAGE_CHARS]


def stack_signature(stack: Optional[str]) -> str:
    """Leading frames of a stack trace with positions masked"""
    if not stack:
        return ''
    frames = []
    for line in stack.splitlines():
        line = line.strip()
        if not line:
            continue
        line = _PY_LINE.sub('line ?', line)
        line = _JS_POSITION.sub(':?', line)
        frames.append(_scrub(line))
        if len(frames) >= FINGERPRINT_STACK_FRAMES:
            break
    return '\n'.join(frames)


def generate_fingerprint(title: str, message: str, stack: Optional[str] = None) -> str:
    """
    Build the deduplication key for an error.

    Args:
        title: Error title, usually the exception class name
        message: Error message
        stack: Optional stack trace; without it the key depends on title and message only

    Returns:
        Hex string of FINGERPRINT_LENGTH characters

    Raises:
        InvalidInputError: If title or message is empty
    """
    title = _require_text('title', title)
    message = _require_text('message', message)

    content = SEPARATOR.join((
        _scrub(title),
        normalize_message(message),
        stack_signature(stack),
    ))
    return hashlib.sha256(content.encode('utf-8')).hexdigest()[:FINGERPRINT_LENGTH]


def validate_fingerprint(fingerprint: str) -> str:
    """Check a caller-supplied fingerprint override"""
    if not isinstance(fingerprint, str) or not fingerprint.strip():
        raise InvalidInputError("fingerprint must be a non-empty string", details={'field': 'fingerprint'})
    fingerprint = fingerprint.strip()
    if len(fingerprint) > FINGERPRINT_MAX_LENGTH:
        raise InvalidInputError(
            f"fingerprint must be at most {FINGERPRINT_MAX_LENGTH} characters",
            details={'field': 'fingerprint'}
        )
    return fingerprint
