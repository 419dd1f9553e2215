"""Rule-based SEO scoring for a video's title, description and tags.

Every function here is pure: the same input always produces the same
``FullAnalysis`` and nothing is read from or written to the outside world.
"""

import re
from typing import Dict, List, Sequence, Tuple

from .schemas import Check, FieldAnalysis, FullAnalysis

# Words and phrases associated with higher click-through rates.
POWER_WORDS: Tuple[str, ...] = (
    "ultimate", "complete", "guide", "secret", "proven", "best", "top",
    "easy", "fast", "quick", "simple", "free", "new", "exclusive",
    "amazing", "incredible", "powerful", "essential", "beginner", "advanced",
    "pro", "master", "hack", "trick", "step-by-step", "tutorial", "how to",
)

# Weights in percent; overall score is computed in hundredths.
TITLE_WEIGHT = 35
DESCRIPTION_WEIGHT = 35
TAGS_WEIGHT = 30

MAX_RECOMMENDATIONS = 5

GOOD_THRESHOLD = 75
NEEDS_WORK_THRESHOLD = 50

_LINK_RE = re.compile(r"https?://\S+")
_TIMESTAMP_RE = re.compile(r"\d{1,2}:\d{2}")

# (field, check label) -> (priority, recommendation); 1 is most urgent.
RECOMMENDATIONS: Dict[Tuple[str, str], Tuple[int, str]] = {
    ("title", "Length"): (
        1, "Optimize title length to 50-60 characters for better visibility"),
    ("title", "Keywords"): (
        2, "Include your main keyword in the video title"),
    ("title", "Power Words"): (
        3, "Add power words like 'Ultimate', 'Complete', or 'Easy' to increase CTR"),
    ("description", "Length"): (
        2, "Expand description to at least 200 characters with relevant information"),
    ("description", "Keyword Density"): (
        2, "Include more target keywords naturally in the description"),
    ("description", "Links"): (
        4, "Add relevant links to resources, social media, or related content"),
    ("description", "Timestamps"): (
        3, "Add timestamps/chapters to improve user experience and watch time"),
    ("tags", "Tag Count"): (
        2, "Add more tags (aim for 8-15) to improve discoverability"),
    ("tags", "Relevance"): (
        1, "Use tags that directly relate to your title and content"),
    ("tags", "Variety"): (
        3, "Mix broad keywords with specific long-tail phrases"),
}


def _tags_found_in(text: str, tags: Sequence[str]) -> List[str]:
    lowered = text.lower()
    return [tag for tag in tags if tag.lower() in lowered]


def _percent(part: int, total: int) -> float:
    # An empty denominator counts as 0% coverage.
    return part / total * 100 if total else 0.0


def analyze_title(title: str, tags: Sequence[str]) -> FieldAnalysis:
    checks = []
    score = 0

    length = len(title)
    if 50 <= length <= 60:
        checks.append(Check(label="Length", passed=True,
                            message=f"Perfect length ({length} chars)"))
        score += 30
    elif 40 <= length <= 70:
        checks.append(Check(label="Length", passed=True,
                            message=f"Good length ({length} chars), optimal is 50-60"))
        score += 20
    elif length < 40:
        checks.append(Check(label="Length", passed=False,
                            message=f"Too short ({length} chars), aim for 50-60"))
        score += 10
    else:
        checks.append(Check(label="Length", passed=False,
                            message=f"Too long ({length} chars), may be truncated"))
        score += 5

    keywords = _tags_found_in(title, tags)
    if len(keywords) >= 2:
        checks.append(Check(label="Keywords", passed=True,
                            message=f"{len(keywords)} keywords found in title"))
        score += 35
    elif len(keywords) == 1:
        checks.append(Check(label="Keywords", passed=True,
                            message="1 keyword found, consider adding more"))
        score += 20
    else:
        checks.append(Check(label="Keywords", passed=False,
                            message="No keywords from tags found in title"))

    title_lower = title.lower()
    power_words = [word for word in POWER_WORDS if word in title_lower]
    if len(power_words) >= 2:
        checks.append(Check(label="Power Words", passed=True,
                            message=f"Great! {len(power_words)} power words found"))
        score += 35
    elif len(power_words) == 1:
        checks.append(Check(label="Power Words", passed=True,
                            message=f'1 power word found: "{power_words[0]}"'))
        score += 20
    else:
        checks.append(Check(
            label="Power Words", passed=False,
            message="No power words found. Add words like 'Ultimate', 'Complete', 'Best'",
        ))

    return FieldAnalysis(score=min(100, score), checks=checks)


def analyze_description(description: str, tags: Sequence[str]) -> FieldAnalysis:
    checks = []
    score = 0

    length = len(description)
    if 200 <= length <= 500:
        checks.append(Check(label="Length", passed=True,
                            message=f"Good length ({length} chars)"))
        score += 25
    elif length > 500:
        checks.append(Check(label="Length", passed=True,
                            message=f"Detailed description ({length} chars)"))
        score += 25
    elif length >= 100:
        checks.append(Check(label="Length", passed=False,
                            message=f"Short ({length} chars), aim for 200+ chars"))
        score += 15
    else:
        checks.append(Check(label="Length", passed=False,
                            message=f"Too short ({length} chars), needs more content"))
        score += 5

    found = len(_tags_found_in(description, tags))
    total = len(tags)
    density = _percent(found, total)
    if density >= 60:
        checks.append(Check(label="Keyword Density", passed=True,
                            message=f"{found}/{total} keywords included"))
        score += 25
    elif density >= 30:
        checks.append(Check(label="Keyword Density", passed=True,
                            message=f"{found}/{total} keywords, add more"))
        score += 15
    else:
        checks.append(Check(label="Keyword Density", passed=False,
                            message=f"Only {found}/{total} keywords found"))
        score += 5

    if _LINK_RE.search(description):
        checks.append(Check(label="Links", passed=True,
                            message="Contains links to resources"))
        score += 25
    else:
        checks.append(Check(label="Links", passed=False,
                            message="No links found. Add relevant links"))

    if _TIMESTAMP_RE.search(description):
        checks.append(Check(label="Timestamps", passed=True,
                            message="Contains video chapters/timestamps"))
        score += 25
    else:
        checks.append(Check(label="Timestamps", passed=False,
                            message="No timestamps. Add chapters for better UX"))

    return FieldAnalysis(score=min(100, score), checks=checks)


def _is_relevant(tag: str, title_lower: str) -> bool:
    return any(
        len(word) > 3 and word in title_lower
        for word in tag.lower().split(" ")
    )


def analyze_tags(tags: Sequence[str], title: str) -> FieldAnalysis:
    checks = []
    score = 0

    count = len(tags)
    if 8 <= count <= 15:
        checks.append(Check(label="Tag Count", passed=True,
                            message=f"Optimal count ({count} tags)"))
        score += 35
    elif 5 <= count < 8:
        checks.append(Check(label="Tag Count", passed=True,
                            message=f"{count} tags, consider adding more (8-15 optimal)"))
        score += 20
    elif count > 15:
        checks.append(Check(label="Tag Count", passed=True,
                            message=f"{count} tags, slightly over optimal"))
        score += 25
    else:
        checks.append(Check(label="Tag Count", passed=False,
                            message=f"Only {count} tags, add more (8-15 optimal)"))
        score += 10

    title_lower = title.lower()
    relevant = sum(1 for tag in tags if _is_relevant(tag, title_lower))
    relevance = _percent(relevant, count)
    if relevance >= 50:
        checks.append(Check(label="Relevance", passed=True,
                            message=f"{relevant}/{count} tags match title keywords"))
        score += 35
    elif relevance >= 25:
        checks.append(Check(label="Relevance", passed=True,
                            message=f"{relevant}/{count} relevant, add more matching tags"))
        score += 20
    else:
        checks.append(Check(label="Relevance", passed=False,
                            message="Tags don't match title keywords well"))
        score += 5

    broad = sum(1 for tag in tags if len(tag.split(" ")) <= 2)
    specific = count - broad
    if broad >= 2 and specific >= 2:
        checks.append(Check(label="Variety", passed=True,
                            message=f"Good mix: {broad} broad, {specific} specific"))
        score += 30
    elif broad > 0 and specific > 0:
        checks.append(Check(label="Variety", passed=True,
                            message=f"Mix could be better: {broad} broad, {specific} specific"))
        score += 20
    else:
        checks.append(Check(label="Variety", passed=False,
                            message="Add a mix of broad and long-tail keywords"))
        score += 5

    return FieldAnalysis(score=min(100, score), checks=checks)


def generate_recommendations(
    title: FieldAnalysis,
    description: FieldAnalysis,
    tags: FieldAnalysis,
) -> List[str]:
    """Turn failed checks into at most five suggestions, most urgent first.

    Failed checks are collected title first, then description, then tags;
    ``sorted`` is stable so equal priorities keep that order.
    """
    candidates = []
    for field, analysis in (("title", title), ("description", description), ("tags", tags)):
        for check in analysis.checks:
            if not check.passed:
                candidates.append(RECOMMENDATIONS[(field, check.label)])

    ranked = sorted(candidates, key=lambda candidate: candidate[0])
    return [text for _, text in ranked[:MAX_RECOMMENDATIONS]]


def overall_score(title_score: int, description_score: int, tags_score: int) -> int:
    """Weighted average of the field scores, rounded half up."""
    hundredths = (
        title_score * TITLE_WEIGHT
        + description_score * DESCRIPTION_WEIGHT
        + tags_score * TAGS_WEIGHT
    )
    return (hundredths + 50) // 100


def score_label(score: int) -> str:
    if score >= GOOD_THRESHOLD:
        return "Good"
    if score >= NEEDS_WORK_THRESHOLD:
        return "Needs Work"
    return "Poor"


def analyze(title: str, description: str, tags: Sequence[str]) -> FullAnalysis:
    title_analysis = analyze_title(title, tags)
    description_analysis = analyze_description(description, tags)
    tags_analysis = analyze_tags(tags, title)

    score = overall_score(
        title_analysis.score, description_analysis.score, tags_analysis.score
    )
    return FullAnalysis(
        title=title_analysis,
        description=description_analysis,
        tags=tags_analysis,
        overall_score=score,
        label=score_label(score),
        recommendations=generate_recommendations(
            title_analysis, description_analysis, tags_analysis
        ),
    )
