"""YAML front matter utilities for markdown and MDX documents.

Content pages carry their metadata in a YAML block fenced by ``---`` lines at
the very top of the file:

    ---
    title: Scheduler
    description: How nodes are ordered and executed
    order: 3
    ---
    # Scheduler

    The scheduler manages node execution order...
"""

import re
from typing import Any

import yaml


# Front matter delimiter (3 dashes)
DELIMITER = "---"

_FRONT_MATTER_PATTERN = re.compile(
    rf"\A\ufeff?{re.escape(DELIMITER)}[ \t]*\r?\n(.*?)^{re.escape(DELIMITER)}[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


def parse_front_matter(content: str) -> tuple[dict[str, Any], str]:
    """Parse YAML front matter from markdown content.

    Args:
        content: Full markdown content including front matter

    Returns:
        Tuple of (front_matter_dict, markdown_content)
        If no front matter found, returns (empty dict, original content)

    Example:
        >>> content = "---\\ntitle: Nodes\\n---\\n# Content"
        >>> metadata, markdown = parse_front_matter(content)
        >>> metadata["title"]
        'Nodes'
        >>> markdown
        '# Content'
    """
    match = _FRONT_MATTER_PATTERN.match(content)

    if not match:
        return {}, content

    yaml_text = match.group(1)
    markdown_content = content[match.end() :]

    try:
        metadata = yaml.safe_load(yaml_text) or {}
    except yaml.YAMLError:
        # Invalid YAML - return empty dict
        return {}, content

    if not isinstance(metadata, dict):
        return {}, content

    return metadata, markdown_content

