"""Render message bodies and build email messages for assignments."""
from __future__ import annotations

import re
from email.headerregistry import Address
from email.message import EmailMessage

from santa.core.config import MessageHeaderConfig
from santa.core.types import Assignment, Participant

FROM_TOKEN = "@FROM@"
TO_TOKEN = "@TO@"
TO_ADDRESS_TOKEN = "@TO_ADDRESS@"

_TOKEN_RE = re.compile(
    "|".join(re.escape(t) for t in (TO_ADDRESS_TOKEN, FROM_TOKEN, TO_TOKEN))
)


def render_body(template: str, giver: Participant, receiver: Participant) -> str:
    """Expand ``@FROM@``, ``@TO@`` and ``@TO_ADDRESS@`` in *template*.

    All tokens are replaced in one pass, so a name or address that
    happens to contain a token is left as written.
    """
    values = {
        FROM_TOKEN: giver.name,
        TO_TOKEN: receiver.name,
        TO_ADDRESS_TOKEN: receiver.address,
    }
    return _TOKEN_RE.sub(lambda m: values[m.group(0)], template)


def build_message(
    header: MessageHeaderConfig,
    template: str,
    assignment: Assignment,
) -> EmailMessage:
    """The message goes to the giver and names their receiver."""
    msg = EmailMessage()
    msg["From"] = header.from_addr
    msg["Subject"] = header.subject
    msg["To"] = Address(
        display_name=assignment.giver.name, addr_spec=assignment.giver.email,
    )
    msg.set_content(render_body(template, assignment.giver, assignment.receiver))
    return msg
