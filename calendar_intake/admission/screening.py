"""Content and origin screens applied before any extraction work.

screen_content validates and sanitizes submitted text; screen_origin
flags requests that look automated or arrive from unexpected referers.
Both return an AdmissionDecision so the controller can short-circuit.
"""

from __future__ import annotations

import re

from calendar_intake.admission.config import AdmissionConfig
from calendar_intake.admission.schemas import AdmissionDecision

_NON_ASCII_RUN = re.compile(r"[^\x00-\x7F]{1000,}")
_INJECTION_MARKERS = re.compile(r"<script|javascript:|data:|vbscript:", re.IGNORECASE)

_SUSPICIOUS_CONTENT_PATTERNS: tuple[re.Pattern[str], ...] = (
    _NON_ASCII_RUN,
    _INJECTION_MARKERS,
)

# Tab, LF and CR survive sanitizing
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

_BOT_USER_AGENTS: tuple[re.Pattern[str], ...] = (
    re.compile(r"bot|crawler|spider|scraper", re.IGNORECASE),
    re.compile(r"curl|wget|python|node|go-http", re.IGNORECASE),
    re.compile(r"postman|insomnia|httpie", re.IGNORECASE),
)

TRUNCATION_MARKER = "..."

MIN_REPEATED_BLOCK = 1000
MIN_REPEATS = 5

# Characters a `.` does not match; repeated runs never cross them
_LINE_BREAKS = re.compile(r"[\n\r\u2028\u2029]")


def has_repeated_block(
    text: str,
    min_block: int = MIN_REPEATED_BLOCK,
    repeats: int = MIN_REPEATS,
) -> bool:
    """
    Detect a block of at least min_block characters followed by at least
    `repeats` identical copies of itself within a single line.

    Equivalent to searching for `(.{1000,})\\1{5,}` without DOTALL: the block
    and its copies never span a line break, so a pasted section repeated
    across lines is not flagged.
    """
    min_length = min_block * (repeats + 1)
    return any(
        _has_periodic_run(line, min_block, repeats)
        for line in _LINE_BREAKS.split(text)
        if len(line) >= min_length
    )


def _has_periodic_run(text: str, min_block: int, repeats: int) -> bool:
    """
    Scan one line for the repeated block without regex backtracking.

    Any such run of period p contains an anchor offset (a multiple of
    min_block) whose window recurs exactly p characters later, so only
    those offsets are tried.
    """
    copies = repeats + 1
    n = len(text)
    if n < min_block * copies:
        return False

    for anchor in range(0, n - min_block * repeats + 1, min_block):
        window = text[anchor : anchor + min_block]
        pos = text.find(window, anchor + min_block)
        while pos != -1:
            period = pos - anchor
            if anchor + period * repeats > n:
                break
            span = period * (repeats - 1)
            if text[anchor : anchor + span] == text[pos : pos + span]:
                if _periodic_run_length(text, anchor, period, repeats) >= period * copies:
                    return True
            pos = text.find(window, pos + 1)
    return False


def _periodic_run_length(text: str, anchor: int, period: int, repeats: int) -> int:
    """Length of the period-`period` run through [anchor, anchor + repeats * period)."""
    start = anchor
    while start > 0 and anchor - start < period and text[start - 1] == text[start - 1 + period]:
        start -= 1
    end = anchor + period * repeats
    limit = end + period
    while end < len(text) and end < limit and text[end] == text[end - period]:
        end += 1
    return end - start


def screen_content(content: object, config: AdmissionConfig) -> AdmissionDecision:
    """
    Validate and sanitize submitted text.

    Args:
        content: Raw value from the request body.
        config: Content limits.

    Returns:
        An allowing decision carrying the sanitized text, or a denial
        with category "invalid_content".
    """
    if not isinstance(content, str) or not content:
        return AdmissionDecision.deny(
            "invalid_content", "empty_content", "Content must be a non-empty string"
        )

    if len(content) > config.max_content_length:
        return AdmissionDecision.deny(
            "invalid_content",
            "content_too_long",
            f"Content too long. Maximum {config.max_content_length} characters allowed",
        )

    if has_repeated_block(content) or any(
        pattern.search(content) for pattern in _SUSPICIOUS_CONTENT_PATTERNS
    ):
        return AdmissionDecision.deny(
            "invalid_content",
            "suspicious_content",
            "Content contains suspicious patterns",
        )

    sanitized = _CONTROL_CHARS.sub("", content).strip()
    if not sanitized:
        return AdmissionDecision.deny(
            "invalid_content", "empty_content", "Content must be a non-empty string"
        )

    lines = sanitized.split("\n")
    if len(lines) > config.max_lines:
        return AdmissionDecision.deny(
            "invalid_content",
            "too_many_lines",
            f"Content has too many lines (max {config.max_lines})",
        )

    limit = config.max_line_length
    sanitized = "\n".join(
        line[:limit] + TRUNCATION_MARKER if len(line) > limit else line
        for line in lines
    )
    return AdmissionDecision.allow(sanitized_content=sanitized)


def screen_origin(
    user_agent: str | None,
    referer: str | None,
    host: str | None,
    config: AdmissionConfig,
) -> AdmissionDecision:
    """
    Reject requests from automated clients or foreign referers.

    A referer is acceptable when it contains the request's own host or
    one of the allow-listed development/hosting domains.
    """
    user_agent = user_agent or ""
    for pattern in _BOT_USER_AGENTS:
        if pattern.search(user_agent):
            return AdmissionDecision.deny(
                "suspicious", "automated_client", "Automated request detected"
            )

    if not user_agent:
        return AdmissionDecision.deny(
            "suspicious", "missing_user_agent", "Missing user agent"
        )

    if referer and not (host and host in referer):
        if not any(allowed in referer for allowed in config.allowed_referers):
            return AdmissionDecision.deny(
                "suspicious", "suspicious_referer", "Suspicious referer"
            )

    return AdmissionDecision.allow()
