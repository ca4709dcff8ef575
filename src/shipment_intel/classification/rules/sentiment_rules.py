"""
Weighted sentiment keyword groups.

Every keyword found adds its group's weight to a signed score. Groups marked
`escalation` let a moderate score (>= ESCALATED_MIN_SCORE) read as escalated
rather than positive.
"""

from dataclasses import dataclass

from shipment_intel.models.enums import Sentiment


URGENT_MIN_SCORE = 8
ESCALATED_MIN_SCORE = 5
NEGATIVE_MAX_SCORE = -3  # exclusive
POSITIVE_MIN_SCORE = 3  # exclusive


@dataclass(frozen=True)
class SentimentGroup:
    sentiment: Sentiment
    keywords: tuple[str, ...]
    weight: int
    field: str  # "subject" or "body"
    escalation: bool = False


def _groups(sentiment, field, *entries, escalation=False):
    return tuple(
        SentimentGroup(sentiment, keywords, weight, field, escalation)
        for keywords, weight in entries
    )


SENTIMENT_GROUPS: tuple[SentimentGroup, ...] = (
    *_groups(
        Sentiment.URGENT, "subject",
        (("URGENT", "ASAP", "IMMEDIATELY"), 10),
        (("RUSH", "PRIORITY", "CRITICAL"), 9),
        (("TIME SENSITIVE", "DEADLINE"), 8),
        (("EOD", "END OF DAY"), 7),
        (("NEED", "TODAY"), 6),
    ),
    *_groups(
        Sentiment.URGENT, "body",
        (("PLEASE EXPEDITE", "NEED URGENTLY"), 8),
        (("ASAP", "AS SOON AS POSSIBLE"), 7),
    ),
    *_groups(
        Sentiment.ESCALATED, "subject",
        (("ESCALATION", "ESCALATE"), 10),
        (("COMPLAINT", "ISSUE"), 8),
        (("THIRD TIME", "MULTIPLE TIMES"), 8),
        (("UNRESOLVED", "PENDING SINCE"), 7),
        (("STILL WAITING", "NO RESPONSE"), 7),
        escalation=True,
    ),
    *_groups(
        Sentiment.ESCALATED, "body",
        (("ESCALATING THIS", "RAISING THIS"), 9),
        (("NOT ACCEPTABLE", "UNACCEPTABLE"), 8),
        (("BEEN WAITING", "FOLLOWING UP AGAIN"), 6),
        escalation=True,
    ),
    *_groups(
        Sentiment.NEGATIVE, "subject",
        (("DISAPPOINTED", "DISSATISFIED"), -8),
        (("FAILED", "ERROR", "WRONG"), -6),
        (("PROBLEM", "ISSUE"), -5),
        (("DELAYED", "MISSING"), -4),
    ),
    *_groups(
        Sentiment.NEGATIVE, "body",
        (("DISAPPOINTED", "FRUSTRATED"), -8),
        (("POOR SERVICE", "BAD EXPERIENCE"), -8),
        (("NOT HAPPY", "UNACCEPTABLE"), -7),
        (("PLEASE EXPLAIN", "WHY IS THIS"), -4),
    ),
    *_groups(
        Sentiment.POSITIVE, "subject",
        (("WELL DONE", "GREAT JOB"), 7),
        (("APPRECIATE", "GRATEFUL"), 6),
        (("THANK YOU", "THANKS"), 5),
    ),
    *_groups(
        Sentiment.POSITIVE, "body",
        (("EXCELLENT", "GREAT SERVICE"), 7),
        (("APPRECIATE YOUR", "GRATEFUL FOR"), 6),
        (("THANK YOU", "THANKS FOR"), 5),
        (("SMOOTH", "SEAMLESS"), 5),
    ),
)
