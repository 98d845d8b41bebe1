"""Target URL normalization.

Inputs without a scheme are assumed to be HTTPS. Only ``http`` and ``https``
targets with a valid host are accepted; validation is delegated to the
``validators`` package.
"""

import re

import validators

from shortlinks.errors import ValidationError

__all__ = ["normalize_target_url"]

_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_HTTP_SCHEME_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


def normalize_target_url(url: object) -> str:
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("URL is required and must be a string")

    normalized = url.strip()
    if not _SCHEME_PATTERN.match(normalized):
        normalized = f"https://{normalized}"
    elif not _HTTP_SCHEME_PATTERN.match(normalized):
        raise ValidationError("Only http and https URLs can be shortened")

    if not validators.url(normalized):
        raise ValidationError(f"Invalid URL format: {url.strip()}")
    return normalized
