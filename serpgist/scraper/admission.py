"""Admission gate: decide whether fetched HTML is worth extracting.

Signatures are kept in ordered, versioned rule tables so they can be tuned
or swapped without touching the crawl orchestration.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence


class AdmissionVerdict(str, Enum):
    ADMIT = "admit"
    PARKED_OR_AD = "parked_or_ad"
    CHALLENGE = "challenge"


@dataclass(frozen=True)
class SignatureRule:
    """A regex that, when found, assigns *verdict* to the document."""

    name: str
    pattern: re.Pattern[str]
    verdict: AdmissionVerdict


@dataclass(frozen=True)
class AdmissionDecision:
    verdict: AdmissionVerdict
    reason: str = ""

    @property
    def admitted(self) -> bool:
        return self.verdict is AdmissionVerdict.ADMIT


def _rule(name: str, pattern: str, verdict: AdmissionVerdict) -> SignatureRule:
    return SignatureRule(name, re.compile(pattern, re.IGNORECASE), verdict)


SIGNATURES_VERSION = "2024.10"

PARKED_SIGNATURES: tuple[SignatureRule, ...] = (
    _rule("adsense_parked_domain", r"adsense/domains/caf\.js", AdmissionVerdict.PARKED_OR_AD),
)

CHALLENGE_SIGNATURES: tuple[SignatureRule, ...] = (
    _rule("challenge_platform", r"cdn-cgi/challenge-platform/", AdmissionVerdict.CHALLENGE),
    _rule("challenge_cookie", r"\bcf-chl-\w+", AdmissionVerdict.CHALLENGE),
    _rule("ray_id", r"\bcRay\b", AdmissionVerdict.CHALLENGE),
    _rule("just_a_moment", r"Just a moment\.\.\.", AdmissionVerdict.CHALLENGE),
    _rule("attention_required", r"Attention Required!\s*\|\s*Cloudflare", AdmissionVerdict.CHALLENGE),
    _rule("ddos_protection", r"DDoS protection by Cloudflare", AdmissionVerdict.CHALLENGE),
    _rule("enable_js_cookies", r"enable (JavaScript|cookies) and try again", AdmissionVerdict.CHALLENGE),
    _rule("rocket_loader", r"Rocket Loader is loading your page", AdmissionVerdict.CHALLENGE),
    _rule("js_challenge_check", r"/cdn-cgi/l/chk_jschl", AdmissionVerdict.CHALLENGE),
)

MIN_DOCUMENT_LENGTH = 400
CHALLENGE_SCAN_LIMIT = 200_000


class ContentAdmissionGate:
    """Classify HTML as admissible, parked/ad, or an anti-bot challenge.

    This is a pure heuristic: false positives and negatives are expected.
    """

    def __init__(
        self,
        parked_rules: Optional[Sequence[SignatureRule]] = None,
        challenge_rules: Optional[Sequence[SignatureRule]] = None,
        min_length: int = MIN_DOCUMENT_LENGTH,
        scan_limit: int = CHALLENGE_SCAN_LIMIT,
    ) -> None:
        self.parked_rules = tuple(PARKED_SIGNATURES if parked_rules is None else parked_rules)
        self.challenge_rules = tuple(
            CHALLENGE_SIGNATURES if challenge_rules is None else challenge_rules
        )
        self.min_length = min_length
        self.scan_limit = scan_limit

    def classify(self, html: str) -> AdmissionDecision:
        if len(html) < self.min_length:
            return AdmissionDecision(AdmissionVerdict.PARKED_OR_AD, "too_short")

        for rule in self.parked_rules:
            if rule.pattern.search(html):
                return AdmissionDecision(rule.verdict, rule.name)

        head = html[: self.scan_limit]
        for rule in self.challenge_rules:
            if rule.pattern.search(head):
                return AdmissionDecision(rule.verdict, rule.name)

        return AdmissionDecision(AdmissionVerdict.ADMIT)
