"""Keep/drop decisions for inline images.

The same decision table runs twice for an image: eagerly with the declared
``width``/``height`` attributes, and again once the image has loaded and its
rendered size is known. The second pass can only drop more images.
"""

import re

from feedlens.models import ImageCandidate

MIN_IMAGE_AREA = 10000  # 100x100 px
MIN_IMAGE_WIDTH = 80
MIN_IMAGE_HEIGHT = 50
TRACKING_PIXEL_THRESHOLD = 5

AVATAR_KEYWORDS = ("avatar", "author", "profile", "headshot", "logo", "icon", "badge")

TRACKING_PATTERNS = (
    "pixel",
    "beacon",
    "track",
    "analytics",
    "stat",
    "count",
    "impression",
    "spacer",
    "blank.gif",
    "clear.gif",
    "1x1",
    "1px",
)

_DIMENSION_PATTERN = re.compile(r"^\s*(\d+)(?:px)?\s*\Z", re.IGNORECASE)


def parse_dimension(value: str | int | None) -> int:
    """Read a width/height attribute; ``"640px"`` reads as 640.

    Relative sizes such as ``"50%"`` say nothing about pixels and read as 0.
    """
    if value is None:
        return 0
    if isinstance(value, int):
        return max(value, 0)
    match = _DIMENSION_PATTERN.match(value)
    return int(match.group(1)) if match else 0


def looks_like_avatar(text: str) -> bool:
    """Check for avatar, logo and icon style wording."""
    needle = text.lower()
    return any(keyword in needle for keyword in AVATAR_KEYWORDS)


def is_tracking_pixel(src: str, width: int, height: int) -> bool:
    """Check for tiny or beacon-like images."""
    if (
        0 < width <= TRACKING_PIXEL_THRESHOLD
        and 0 < height <= TRACKING_PIXEL_THRESHOLD
    ):
        return True
    needle = src.lower()
    return any(pattern in needle for pattern in TRACKING_PATTERNS)


def should_remove_image(
    src: str,
    alt: str = "",
    css_class: str = "",
    element_id: str = "",
    declared_width: int = 0,
    declared_height: int = 0,
    observed_width: int = 0,
    observed_height: int = 0,
) -> bool:
    """Apply the image decision table.

    Args:
        src: The resolved source URL.
        alt: Alt text.
        css_class: Class attribute.
        element_id: Id attribute.
        declared_width: Width from the markup, 0 when absent.
        declared_height: Height from the markup, 0 when absent.
        observed_width: Rendered width, 0 when not loaded yet.
        observed_height: Rendered height, 0 when not loaded yet.

    Returns:
        True if the image should be dropped.
    """
    if looks_like_avatar(f"{src} {alt} {css_class} {element_id}"):
        return True

    if is_tracking_pixel(
        src,
        observed_width or declared_width,
        observed_height or declared_height,
    ):
        return True

    width = max(declared_width, observed_width)
    height = max(declared_height, observed_height)

    if width > 0 and height > 0:
        if width * height < MIN_IMAGE_AREA:
            return True
        return width < MIN_IMAGE_WIDTH or height < MIN_IMAGE_HEIGHT

    # Only one side known: floors without the area check.
    if 0 < width < MIN_IMAGE_WIDTH:
        return True
    return 0 < height < MIN_IMAGE_HEIGHT


def admit_eager(candidate: ImageCandidate, src: str) -> bool:
    """Decide on an image using its declared attributes only."""
    return not should_remove_image(
        src,
        alt=candidate.alt,
        css_class=candidate.css_class,
        element_id=candidate.element_id,
        declared_width=parse_dimension(candidate.width),
        declared_height=parse_dimension(candidate.height),
    )


def admit_post_load(
    candidate: ImageCandidate,
    src: str,
    observed_width: int,
    observed_height: int,
) -> bool:
    """Re-decide on an image once its rendered size is known.

    An image the eager pass dropped stays dropped.
    """
    if not admit_eager(candidate, src):
        return False
    return not should_remove_image(
        src,
        alt=candidate.alt,
        css_class=candidate.css_class,
        element_id=candidate.element_id,
        declared_width=parse_dimension(candidate.width),
        declared_height=parse_dimension(candidate.height),
        observed_width=observed_width,
        observed_height=observed_height,
    )


def is_vector_source(value: str) -> bool:
    """Check if a URL or data URI points at an SVG."""
    normalized = value.strip().lower()
    if not normalized:
        return False
    if normalized.startswith("data:image/svg"):
        return True
    path = normalized.split("#", 1)[0].split("?", 1)[0]
    return path.endswith(".svg")


def is_vector_type(mime_type: str) -> bool:
    """Check if a declared type names a vector format."""
    return "svg" in mime_type.lower()


def srcset_contains_vector(srcset: str) -> bool:
    """Check if any URL of a srcset list is an SVG."""
    for part in srcset.split(","):
        tokens = part.split()
        if tokens and is_vector_source(tokens[0]):
            return True
    return False
