"""Effective source selection for image references."""

import re
from dataclasses import dataclass

from feedlens.models import LAZY_SOURCE_ATTRIBUTES, ImageCandidate

DENSITY_SCALE = 1000
DEFAULT_WEIGHT = 1

_WIDTH_PATTERN = re.compile(r"^(\d+)w$", re.IGNORECASE)
_DENSITY_PATTERN = re.compile(r"^(\d+(?:\.\d+)?|\.\d+)x$", re.IGNORECASE)

# One srcset candidate: a URL, then either the commas ending it or a descriptor
# list running to the next comma.
_CANDIDATE_PATTERN = re.compile(
    r"[\s,]*(?P<url>\S+?)(?:,+(?=\s|\Z)|,*\Z|\s+(?P<descriptor>[^,]*),?)"
)


@dataclass(frozen=True)
class SrcsetEntry:
    """One ``url descriptor`` pair of a srcset list."""

    url: str
    descriptor: str

    @property
    def score(self) -> float:
        """Comparable weight: pixel width, or density scaled by 1000."""
        return descriptor_score(self.descriptor)


def descriptor_score(descriptor: str) -> float:
    """Score a srcset descriptor.

    ``800w`` scores 800 and ``2x`` scores 2000. Anything unparsable weighs 1.
    """
    value = descriptor.strip()
    match = _WIDTH_PATTERN.match(value)
    if match:
        return int(match.group(1))
    match = _DENSITY_PATTERN.match(value)
    if match:
        return float(match.group(1)) * DENSITY_SCALE
    return DEFAULT_WEIGHT


def parse_srcset(srcset: str) -> list[SrcsetEntry]:
    """Split a srcset attribute into entries; a missing descriptor means ``1x``.

    A URL runs up to the next whitespace, so commas inside it (``data:`` URIs)
    are kept. Entries are separated by a comma ending the URL or the descriptor.
    """
    entries = []
    for match in _CANDIDATE_PATTERN.finditer(srcset):
        url = match.group("url").rstrip(",")
        if not url:
            continue
        descriptors = (match.group("descriptor") or "").split()
        entries.append(SrcsetEntry(url=url, descriptor=descriptors[0] if descriptors else "1x"))
    return entries


def best_from_srcset(srcset: str) -> str | None:
    """Return the highest-scoring URL of a srcset; the first entry wins ties."""
    best: SrcsetEntry | None = None
    for entry in parse_srcset(srcset):
        if best is None or entry.score > best.score:
            best = entry
    return best.url if best else None


def best_from_picture(candidate: ImageCandidate) -> str | None:
    """Pick a URL from the <picture> group an image belongs to.

    Vector sources are skipped. Later sources are taken as higher quality, so the
    winner of the last usable source is kept.
    """
    chosen = None
    for source in candidate.picture_sources:
        if "svg" in source.type.lower():
            continue
        if source.srcset:
            url = best_from_srcset(source.srcset)
            if url:
                chosen = url
    return chosen


def select_source(candidate: ImageCandidate) -> str:
    """Pick the one URL an image should display.

    Order: the image's own srcset, its <picture> group, ``src``, then the first
    lazy-load attribute that is set.

    Returns:
        The chosen URL, or an empty string when the image has no source.
    """
    if candidate.srcset.strip():
        url = best_from_srcset(candidate.srcset)
        if url:
            return url

    if candidate.picture_sources:
        url = best_from_picture(candidate)
        if url:
            return url

    if candidate.src.strip():
        return candidate.src.strip()

    for name in LAZY_SOURCE_ATTRIBUTES:
        value = candidate.lazy_sources.get(name, "").strip()
        if value:
            return value

    return ""
