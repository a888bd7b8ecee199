"""Sanitising helpers for user-written text (reviews, comments, bios, list names)"""

import re
import bleach

# Markup that may survive in review and comment bodies
ALLOWED_TAGS = ['b', 'i', 'u', 'em', 'strong', 'p', 'br']

USERNAME_PATTERN = r'^[a-zA-Z0-9_]+$'

SCRIPT_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (r'<script[^>]*>', r'javascript:', r'on\w+\s*=', r'<iframe')
]


class SafeStringMixin:
    """Validators shared by the request schemas that accept free text"""

    @staticmethod
    def sanitize_html(value: str) -> str:
        if not value:
            return value
        return bleach.clean(value, tags=ALLOWED_TAGS, strip=True)

    @staticmethod
    def validate_no_script(value: str) -> str:
        """Reject values carrying script payloads outright"""
        if value and any(p.search(value) for p in SCRIPT_PATTERNS):
            raise ValueError("Invalid characters detected")
        return value

    @classmethod
    def clean_text(cls, value: str) -> str:
        return cls.sanitize_html(cls.validate_no_script(value))

    @staticmethod
    def reject_null(value):
        """Patch fields backed by NOT NULL columns may be omitted, never nulled"""
        if value is None:
            raise ValueError("Field may not be null")
        return value
