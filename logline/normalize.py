import re
from typing import List, Tuple


# Ordered normalization rules.
# Order matters: a hex run made only of digits between slashes is a
# number, not a hex identifier.
NORMALIZATION_RULES: List[Tuple[re.Pattern, str]] = [
    # Plain integers standing as their own token (IDs, counts, ports, ...)
    (
        re.compile(r"(?<![0-9A-Za-z_])[0-9]+(?![0-9A-Za-z_])"),
        "<NUM>",
    ),

    # Hex identifiers, only when delimited by "/" on both sides
    (
        re.compile(r"(?<=/)[0-9a-fA-F]{8,}(?=/)"),
        "<HEX>",
    ),
]


def normalize(message: str) -> str:
    """
    Normalize a log message into a stable template.

    This function must be:
    - deterministic
    - idempotent
    - side-effect free

    It should NEVER throw.
    """
    if not message:
        return ""

    normalized = message

    for pattern, token in NORMALIZATION_RULES:
        normalized = pattern.sub(token, normalized)

    return normalized
