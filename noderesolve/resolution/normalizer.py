"""Query normalization and name variants.

Normalized strings are the key for all matching. Variants let a single
logical entity be found regardless of name order ("Smith, John" and
"John Smith").
"""

# Kept besides letters, numbers and whitespace. Comma survives only so that
# variant generation can still see "Last, First".
_NAME_PUNCTUATION = frozenset("-',")


def _keep(char: str) -> bool:
    return (
        char.isalpha()
        or char.isnumeric()
        or char.isspace()
        or char in _NAME_PUNCTUATION
    )


def normalize_query(text: str) -> str:
    """Normalize a query string for matching.

    Trims, lowercases, drops punctuation other than hyphen, apostrophe
    and comma (letters in any script are kept), and collapses whitespace.
    Idempotent: normalizing a normalized string is a no-op.

    Args:
        text: Raw query text

    Returns:
        Normalized string (possibly empty)

    Example:
        >>> normalize_query("  Dr. O'Brien!  ")
        "dr o'brien"
    """
    lowered = text.strip().lower()
    kept = "".join(char for char in lowered if _keep(char))
    return " ".join(kept.split())


def generate_name_variants(name: str) -> list[str]:
    """Generate alternate surface forms of a name.

    - "Last, First" adds "First Last"
    - "First Last" adds "Last, First"
    - Three or more words without a comma add nothing

    Args:
        name: Name as typed by the caller

    Returns:
        Variants with the input first, duplicates removed
    """
    variants = [name]

    if "," in name:
        parts = [part.strip() for part in name.split(",")]
        if len(parts) == 2 and parts[0] and parts[1]:
            last, first = parts
            variants.append(f"{first} {last}")
    else:
        words = name.split()
        if len(words) == 2:
            variants.append(f"{words[1]}, {words[0]}")

    return list(dict.fromkeys(variants))
