import re
import unicodedata


def _ascii_lower(value: str) -> str:
    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    return value.strip().lower()


def normalize_subdomain(value: str) -> str:
    """Lowercase ASCII form of a subdomain; keeps hyphens, drops everything else."""
    if not value:
        return ""
    value = _ascii_lower(value)
    value = re.sub(r"\s+", "-", value)
    return re.sub(r"[^a-z0-9-]", "", value)


def slugify_identifier(value: str) -> str:
    if not value:
        return ""
    value = _ascii_lower(value)
    value = re.sub(r"[^a-z0-9]+", "_", value)
    return value.strip("_")
