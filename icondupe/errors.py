"""Exceptions raised by the icon comparison pipeline."""

from __future__ import annotations


class IconCompareError(Exception):
    """Base class for pipeline failures."""


class InvalidMarkupError(IconCompareError):
    """Raised when markup has no ``<svg>`` element to normalize."""


class DecodeError(IconCompareError):
    """Raised when normalized markup cannot be decoded into pixels."""


class RenderFailure(IconCompareError):
    """Raised when a mounted widget yields no extractable ``<svg>`` output."""
