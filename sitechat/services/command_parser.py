import re
from dataclasses import dataclass
from typing import Optional, Union

REPLY_COMMAND = "/reply_"

# found anywhere in the message; the first command wins
# session id is a restricted class so the body may contain any characters, newlines included
_REPLY_RE = re.compile(
    r"/reply_(?P<session_id>[A-Za-z0-9_-]+)(?:@\w+)?\s+(?P<body>\S.*)$",
    re.DOTALL,
)


@dataclass(frozen=True)
class ParsedReply:
    session_id: str
    body: str


@dataclass(frozen=True)
class NoMatch:
    pass


NO_MATCH = NoMatch()


def parse_reply_command(text: Optional[str]) -> Union[ParsedReply, NoMatch]:
    """Parse `/reply_<sessionId> <body>` from an operator message."""
    if not text:
        return NO_MATCH
    match = _REPLY_RE.search(text)
    if not match:
        return NO_MATCH
    return ParsedReply(session_id=match.group("session_id"), body=match.group("body"))


def reply_hint(session_id: str) -> str:
    return f"{REPLY_COMMAND}{session_id}"
