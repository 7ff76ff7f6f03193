import re
import unicodedata


def slugify(text: str) -> str:
    """URL-safe lowercase slug, e.g. "Bali & Lombok Escape" -> "bali-lombok-escape"."""
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", ascii_text).strip("-").lower()
    return slug or "package"
