"""Safety and shape checks applied to command content before import."""

import re

from command_library.errors import ContentValidationError

MIN_CONTENT_LENGTH = 10

SUSPICIOUS_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"curl.*\|.*sh", re.IGNORECASE), "potential remote code execution"),
    (re.compile(r"wget.*\|.*sh", re.IGNORECASE), "potential remote code execution"),
    (re.compile(r"rm\s+-rf\s+/", re.IGNORECASE), "dangerous file deletion"),
    (re.compile(r"sudo\s+rm", re.IGNORECASE), "privileged file deletion"),
    (re.compile(r"format\s+c:", re.IGNORECASE), "potential disk formatting"),
    (re.compile(r":\(\)\{.*\}", re.IGNORECASE), "potential fork bomb"),
)

FRONTMATTER_BLOCK = re.compile(r"^---\s*\n(.*?)\n---", re.DOTALL)


def check_suspicious_content(content: str) -> None:
    """Raise ContentValidationError if any deny-list pattern matches."""
    for pattern, message in SUSPICIOUS_PATTERNS:
        if pattern.search(content):
            raise ContentValidationError(f"Suspicious content detected: {message}")


def check_frontmatter_shape(content: str) -> None:
    """Require a closed header block whose non-comment lines are all `key: value` shaped."""
    match = FRONTMATTER_BLOCK.match(content)
    if match is None:
        raise ContentValidationError("Invalid YAML frontmatter: malformed YAML frontmatter")

    for line_number, raw_line in enumerate(match.group(1).split("\n"), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if ":" not in line:
            raise ContentValidationError(
                f"Invalid YAML frontmatter: invalid YAML syntax at line {line_number}: {line}"
            )


def validate_command_content(content: str) -> None:
    """Validate command content for import.

    Raises:
        ContentValidationError: If the content is too short, matches the
            deny-list, or has a malformed header block
    """
    if len(content.strip()) < MIN_CONTENT_LENGTH:
        raise ContentValidationError(
            f"Content too short (minimum {MIN_CONTENT_LENGTH} characters)"
        )

    check_suspicious_content(content)

    if content.strip().startswith("---"):
        check_frontmatter_shape(content.lstrip())
