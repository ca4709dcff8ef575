"""
Thread context extraction.

First step of the classification pipeline: separates what an email says
itself from what it inherits from its thread.

- Strips RE:/FW:/FWD: prefixes from the subject (counted separately)
- Splits the body into fresh text and quoted history
- Collects the chain of forwarders found in forwarded-message headers
- Resolves the original sender (X-Original-Sender header, else last forwarder)
"""

import re
from typing import Optional

import structlog

from shipment_intel.models.email_models import ForwardChainEntry, ThreadContext


logger = structlog.get_logger(__name__)


REPLY_PREFIX = re.compile(r"^RE\s*:\s*", re.IGNORECASE)
FORWARD_PREFIX = re.compile(r"^FWD?\s*:\s*", re.IGNORECASE)

# Each pattern marks the first line of quoted history
QUOTE_START_PATTERNS: dict[str, re.Pattern] = {
    "on_wrote": re.compile(r"^On\s+.+\s+wrote:\s*$", re.IGNORECASE | re.MULTILINE),
    "forward_banner": re.compile(
        r"^-{2,}\s*(?:Original Message|Forwarded message)\s*-{2,}",
        re.IGNORECASE | re.MULTILINE,
    ),
    "header_block": re.compile(
        r"^From:\s*.+\nSent:\s*.+\nTo:\s*.+\nSubject:",
        re.IGNORECASE | re.MULTILINE,
    ),
    "quote_prefix": re.compile(r"^>", re.MULTILINE),
    "le_ecrit": re.compile(r"^Le\s+.+\s+a\s+écrit\s*:", re.IGNORECASE | re.MULTILINE),
    "am_schrieb": re.compile(r"^Am\s+.+\s+schrieb\s+.+:", re.IGNORECASE | re.MULTILINE),
}

# "-- " signature separator followed later by a byline or header block
SIGNATURE_THEN_QUOTE = re.compile(r"\n\s*--\s*\n[\s\S]*?(On\s+.+\s+wrote:|From:)", re.IGNORECASE)

QUOTED_LINE = re.compile(r"^(?:\s*>|On\s+.+\s+wrote:\s*$|From:\s+)", re.IGNORECASE)

EMAIL_ADDRESS = r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"
FORWARD_FROM_LINE = re.compile(
    rf"^[ \t>]*(?:From|De):[ \t]*(?:\"?([^\"<\n]*?)\"?\s*<({EMAIL_ADDRESS})>|<?({EMAIL_ADDRESS})>?)",
    re.IGNORECASE | re.MULTILINE,
)
ANGLE_ADDRESS = re.compile(r"<([^>]+)>")
BARE_ADDRESS = re.compile(rf"({EMAIL_ADDRESS})")

ORIGINAL_SENDER_HEADER = "x-original-sender"


def strip_thread_prefixes(subject: str) -> tuple[str, int, int]:
    """
    Strip every leading reply/forward marker.

    Returns:
        (clean_subject, reply_count, forward_count). Applying the function
        again to clean_subject returns it unchanged with zero counts.
    """
    current = (subject or "").strip()
    replies = 0
    forwards = 0

    while True:
        if REPLY_PREFIX.match(current):
            replies += 1
            current = REPLY_PREFIX.sub("", current, count=1).lstrip()
        elif FORWARD_PREFIX.match(current):
            forwards += 1
            current = FORWARD_PREFIX.sub("", current, count=1).lstrip()
        else:
            break

    return current.strip(), replies, forwards


def extract_address(header_value: str) -> Optional[str]:
    """Pull a lower-cased email address out of a header value."""
    if not header_value:
        return None
    match = ANGLE_ADDRESS.search(header_value)
    if match and "@" in match.group(1):
        return match.group(1).strip().lower()
    match = BARE_ADDRESS.search(header_value)
    if match:
        return match.group(1).lower()
    return None


class ThreadContextExtractor:
    """
    Derives ThreadContext from subject, body and headers.

    Stateless; one instance can be shared by all classification calls.
    """

    def extract(
        self,
        subject: str,
        body_text: Optional[str] = None,
        sender_email: str = "",
        sender_name: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> ThreadContext:
        clean_subject, replies, forwards = strip_thread_prefixes(subject)
        fresh_body, quoted_body = self.split_body(body_text)
        forward_chain = self.extract_forward_chain(body_text)
        original_sender = self.find_original_sender(forward_chain, headers)

        context = ThreadContext(
            is_reply=replies > 0,
            is_forward=forwards > 0,
            thread_depth=replies + forwards,
            has_nested_forwards=forwards > 1,
            clean_subject=clean_subject,
            fresh_body=fresh_body,
            quoted_body=quoted_body,
            forward_chain=forward_chain,
            original_sender=original_sender,
        )

        logger.debug(
            "Thread context extracted",
            sender=sender_email,
            is_reply=context.is_reply,
            is_forward=context.is_forward,
            thread_depth=context.thread_depth,
            fresh_chars=len(fresh_body),
            quoted_chars=len(quoted_body),
            forwarders=len(forward_chain),
        )
        return context

    def split_body(self, body_text: Optional[str]) -> tuple[str, str]:
        """
        Split a body into (fresh, quoted).

        The earliest quote-start signal wins. When it sits at offset 0 the
        body looks fully quoted, and a line-by-line pass recovers whatever
        was typed above the first quoted line.
        """
        if not body_text:
            return "", ""

        positions = self._find_quote_positions(body_text)
        if not positions:
            return body_text.strip(), ""

        first = min(positions)
        if first == 0:
            return self._split_by_lines(body_text)

        return body_text[:first].strip(), body_text[first:].strip()

    def _find_quote_positions(self, body_text: str) -> list[int]:
        positions = []
        for pattern in QUOTE_START_PATTERNS.values():
            match = pattern.search(body_text)
            if match:
                positions.append(match.start())

        sig = SIGNATURE_THEN_QUOTE.search(body_text)
        if sig:
            positions.append(sig.start(1))

        return positions

    def _split_by_lines(self, body_text: str) -> tuple[str, str]:
        fresh_lines: list[str] = []
        quoted_lines: list[str] = []
        in_quote = False

        for line in body_text.split("\n"):
            if QUOTED_LINE.match(line):
                in_quote = True
                quoted_lines.append(line)
            elif not in_quote and line.strip():
                fresh_lines.append(line)
            else:
                quoted_lines.append(line)

        return "\n".join(fresh_lines).strip(), "\n".join(quoted_lines).strip()

    def extract_forward_chain(self, body_text: Optional[str]) -> list[ForwardChainEntry]:
        """First occurrence of each distinct From:/De: address, in body order."""
        chain: list[ForwardChainEntry] = []
        if not body_text:
            return chain

        seen: set[str] = set()
        for match in FORWARD_FROM_LINE.finditer(body_text):
            email = (match.group(2) or match.group(3)).lower()
            if email in seen:
                continue
            seen.add(email)
            name = (match.group(1) or "").strip() or None
            chain.append(ForwardChainEntry(email=email, name=name, position=len(chain)))

        return chain

    def find_original_sender(
        self,
        forward_chain: list[ForwardChainEntry],
        headers: Optional[dict[str, str]] = None,
    ) -> Optional[str]:
        """X-Original-Sender header, else the last forwarder, else None."""
        normalized = {k.lower(): v for k, v in (headers or {}).items()}
        header_value = normalized.get(ORIGINAL_SENDER_HEADER)
        if header_value:
            address = extract_address(header_value)
            if address:
                return address

        if forward_chain:
            return forward_chain[-1].email

        return None
