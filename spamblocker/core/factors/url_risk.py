"""
Comment URL Risk Factor — suspicious links in posts and replies.

Looks at the dedicated link field plus any URLs embedded in content or title.
Static signals (shorteners, throwaway TLDs, raw IP hosts, tracking-heavy or
obfuscated URLs) add fixed increments to a 0.3 baseline. The normalised link
field is also checked for reuse by the same author and by other authors inside
the similarity window.
"""

from __future__ import annotations

from spamblocker.core.publication import is_comment
from spamblocker.core.risk_context import RiskContext
from spamblocker.core.url_utils import (
    collect_all_urls,
    count_query_params,
    has_suspicious_tld,
    is_ip_address_url,
    is_url_shortener,
    is_valid_url,
    normalize_url,
)
from spamblocker.models.risk_models import RiskFactorResult

FACTOR_NAME = "commentUrlRisk"

BASELINE_SCORE = 0.3

LINK_SHORTENER_INCREMENT = 0.25
CONTENT_SHORTENER_INCREMENT = 0.15
SUSPICIOUS_TLD_INCREMENT = 0.2
IP_HOST_INCREMENT = 0.2
QUERY_PARAMS_INCREMENT = 0.05
LONG_URL_INCREMENT = 0.1
INVALID_LINK_INCREMENT = 0.1

MAX_QUERY_PARAMS = 5
MAX_URL_LENGTH = 500


def score_url_patterns(url: str, in_link_field: bool) -> tuple[float, list[str]]:
    """Static per-URL signals. Returns the added score and issue labels."""
    added = 0.0
    issues: list[str] = []

    if is_url_shortener(url):
        added += LINK_SHORTENER_INCREMENT if in_link_field else CONTENT_SHORTENER_INCREMENT
        issues.append("uses URL shortener")
    if has_suspicious_tld(url):
        added += SUSPICIOUS_TLD_INCREMENT
        issues.append("suspicious TLD")
    if is_ip_address_url(url):
        added += IP_HOST_INCREMENT
        issues.append("uses IP address instead of domain")

    params = count_query_params(url)
    if params > MAX_QUERY_PARAMS:
        added += QUERY_PARAMS_INCREMENT
        issues.append(f"{params} query parameters")
    if len(url) > MAX_URL_LENGTH:
        added += LONG_URL_INCREMENT
        issues.append("unusually long URL")

    return added, issues


def _score_link_reuse(ctx: RiskContext, normalized_link: str, issues: list[str]) -> float:
    added = 0.0
    author_key = ctx.author_public_key
    since = ctx.similarity_since

    own = ctx.combined_data.count_links_by_author(normalized_link, author_key, since).count
    if own >= 5:
        added += 0.4
    elif own >= 3:
        added += 0.25
    elif own >= 1:
        added += 0.15
    if own:
        issues.append(f"{own} post(s) with same link from author")

    others = ctx.combined_data.count_links_by_others(normalized_link, author_key, since)
    if others.count >= 10:
        added += 0.5
    elif others.count >= 5:
        added += 0.35
    elif others.count >= 2:
        added += 0.2
    elif others.count >= 1:
        added += 0.1
    if others.count:
        issues.append(
            f"{others.count} post(s) with same link from {others.unique_authors} other author(s)"
        )

    return added


def calculate(ctx: RiskContext, weight: float) -> RiskFactorResult:
    if not is_comment(ctx.publication_type):
        return RiskFactorResult(
            name=FACTOR_NAME,
            score=0.5,
            weight=0.0,
            explanation="Link analysis: not applicable to non-comment publications",
        )

    comment = ctx.publication
    link = (comment.link or "").strip()
    urls = collect_all_urls(link, comment.content, comment.title)
    if not urls:
        return RiskFactorResult(
            name=FACTOR_NAME,
            score=0.5,
            weight=0.0,
            explanation="Link analysis: no URLs in comment",
        )

    score = BASELINE_SCORE
    issues: list[str] = []

    if link:
        if is_valid_url(link):
            added, link_issues = score_url_patterns(link, in_link_field=True)
            score += added
            issues.extend(f"link {issue}" for issue in link_issues)
            score += _score_link_reuse(ctx, normalize_url(link), issues)
        else:
            score += INVALID_LINK_INCREMENT
            issues.append("invalid link format")

    for url in urls:
        if url == link:
            continue
        added, url_issues = score_url_patterns(url, in_link_field=False)
        score += added
        issues.extend(f"embedded URL {issue}" for issue in url_issues)

    score = max(0.0, min(1.0, score))
    explanation = (
        f"Link analysis ({len(urls)} URL(s)): {', '.join(issues)}"
        if issues
        else f"Link analysis ({len(urls)} URL(s)): no suspicious patterns detected"
    )
    return RiskFactorResult(name=FACTOR_NAME, score=score, weight=weight, explanation=explanation)
