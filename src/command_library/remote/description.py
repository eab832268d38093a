"""Short descriptions for command files."""

import frontmatter
import yaml

NO_DESCRIPTION = "No description available"
MAX_DESCRIPTION_LENGTH = 80


def extract_description(content: str) -> str:
    """Derive a one-line description from a command file.

    Uses the ``description`` field of the frontmatter block when present;
    otherwise the first line of the body that is not blank, not a heading
    and not a ``---`` fence, truncated to 80 characters.
    """
    body = content
    try:
        post = frontmatter.loads(content)
    except yaml.YAMLError:
        post = None

    if post is not None:
        description = post.metadata.get("description")
        if isinstance(description, str):
            description = description.strip().strip("\"'")
            if description:
                return description
        body = post.content

    for raw_line in body.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or line.startswith("---"):
            continue
        if len(line) > MAX_DESCRIPTION_LENGTH:
            return line[: MAX_DESCRIPTION_LENGTH - 3] + "..."
        return line

    return NO_DESCRIPTION
