"""
Identifier case conversions shared by the targets.
"""

import re

# Regex pattern to split a word into camelCase pieces, keeping acronyms together
_WORD_PATTERN = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|[0-9]+")

_SEPARATORS = re.compile(r"[^0-9A-Za-z]+")

# Words kept fully upper-cased by go_case, following Go naming conventions
COMMON_INITIALISMS = {
    "ACL",
    "API",
    "ASCII",
    "CPU",
    "CSS",
    "DNS",
    "EOF",
    "GUID",
    "HTML",
    "HTTP",
    "HTTPS",
    "ID",
    "IP",
    "JSON",
    "RPC",
    "SLA",
    "SQL",
    "SSH",
    "TCP",
    "TLS",
    "TTL",
    "UDP",
    "UI",
    "UID",
    "URI",
    "URL",
    "UTF8",
    "UUID",
    "XML",
}

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def split_words(text: str) -> list[str]:
    """Split ALLCAPS, snake_case, kebab-case or camelCase text into words."""
    words = []
    for part in _SEPARATORS.split(text):
        if part.isupper():
            part = part.lower()
        words.extend(_WORD_PATTERN.findall(part))
    return words


def go_case(text: str) -> str:
    """Convert text to an exported CamelCase Go identifier.

    Examples:
        "first_name" -> "FirstName"
        "FIRST_NAME" -> "FirstName"
        "userId" -> "UserID"
        "http_server" -> "HTTPServer"
    """
    parts = []
    for word in split_words(text):
        if word.upper() in COMMON_INITIALISMS:
            parts.append(word.upper())
        else:
            parts.append(word[:1].upper() + word[1:])
    return "".join(parts)


def snake_case(text: str) -> str:
    """Convert text to lower snake_case."""
    return "_".join(word.lower() for word in split_words(text))


def is_identifier(name: str) -> bool:
    return bool(_IDENTIFIER.match(name))
