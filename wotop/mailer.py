"""Templated e-mail delivery over SMTP with CSS inlining."""

from __future__ import annotations

import dataclasses
import mimetypes
import os
import re
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from enum import Enum
from typing import Any, Optional

from bs4 import BeautifulSoup
from jinja2 import Environment, FileSystemLoader

SMTP_TIMEOUT = 10


class Encryption(Enum):
    """How the SMTP connection is secured."""

    NONE = "none"
    SSL_TLS = "ssl"
    STARTTLS = "tls"


def encryption_from_name(name: str) -> Encryption:
    """Map a configured name to an encryption mode; unknown names mean STARTTLS."""
    if name == "ssl":
        return Encryption.SSL_TLS
    if name in ("none", ""):
        return Encryption.NONE
    return Encryption.STARTTLS


@dataclass
class Message:
    """One e-mail to be rendered and sent."""

    to: str = ""
    subject: str = ""
    from_address: str = ""
    from_name: str = ""
    attachments: list[str] = field(default_factory=list)
    data: Any = None
    data_map: Optional[dict[str, Any]] = None

    def template_data(self) -> dict[str, Any]:
        """Return the values templates are rendered with."""
        if self.data_map is not None:
            return dict(self.data_map)
        return {"message": self.data}


_COMMENT_RE = re.compile(r"/\*.*?\*/", re.S)
_ID_RE = re.compile(r"#[\w-]+")
_CLASS_RE = re.compile(r"\.[\w-]+|\[[^\]]*\]")
_TYPE_RE = re.compile(r"(?:^|[\s>+~])([a-zA-Z][\w-]*)")
_IMPORTANT = "!important"


def _split_blocks(css: str) -> list[tuple[str, Optional[str]]]:
    """Split css into top-level (prelude, body) pairs; statements have body None."""
    blocks: list[tuple[str, Optional[str]]] = []
    depth = 0
    prelude_start = 0
    body_start = 0
    prelude = ""
    for pos, char in enumerate(css):
        if char == "{":
            if depth == 0:
                prelude = css[prelude_start:pos].strip()
                body_start = pos + 1
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                blocks.append((prelude, css[body_start:pos]))
                prelude_start = pos + 1
        elif char == ";" and depth == 0:
            statement = css[prelude_start:pos].strip()
            if statement:
                blocks.append((statement, None))
            prelude_start = pos + 1
    return blocks


def _parse_declarations(body: str) -> list[tuple[str, str, bool]]:
    declarations = []
    for part in body.split(";"):
        prop, sep, value = part.partition(":")
        prop, value = prop.strip().lower(), value.strip()
        if not sep or not prop or not value:
            continue
        important = value.lower().endswith(_IMPORTANT)
        if important:
            value = value[: -len(_IMPORTANT)].rstrip()
        declarations.append((prop, value, important))
    return declarations


def _specificity(selector: str) -> tuple[int, int, int]:
    return (
        len(_ID_RE.findall(selector)),
        len(_CLASS_RE.findall(selector)),
        len(_TYPE_RE.findall(selector)),
    )


def inline_css(html: str) -> str:
    """Move rules from <style> blocks onto the matching elements' style attributes.

    Classes are kept, !important markers are kept, and rules that cannot be
    inlined (at-rules and pseudo selectors) stay in their <style> block.
    """
    soup = BeautifulSoup(html, "html.parser")
    matched: dict[int, tuple[Any, list[tuple[bool, int, tuple[int, int, int], int, str, str]]]] = {}
    order = 0
    for style_tag in soup.find_all("style"):
        css = _COMMENT_RE.sub("", style_tag.string or "")
        kept: list[str] = []
        for prelude, body in _split_blocks(css):
            if body is None:
                kept.append(f"{prelude};")
                continue
            if prelude.startswith("@"):
                kept.append(f"{prelude} {{{body}}}")
                continue
            declarations = _parse_declarations(body)
            for selector in (s.strip() for s in prelude.split(",")):
                if not selector:
                    continue
                if ":" in selector:
                    kept.append(f"{selector} {{{body.strip()}}}")
                    continue
                try:
                    elements = soup.select(selector)
                except Exception:  # selector syntax the engine does not support
                    kept.append(f"{selector} {{{body.strip()}}}")
                    continue
                spec = _specificity(selector)
                for element in elements:
                    entries = matched.setdefault(id(element), (element, []))[1]
                    for prop, value, important in declarations:
                        entries.append((important, 0, spec, order, prop, value))
                        order += 1
        if kept:
            style_tag.string = "\n".join(kept)
        else:
            style_tag.decompose()

    for element, entries in matched.values():
        inline = [
            (important, 1, (0, 0, 0), index, prop, value)
            for index, (prop, value, important) in enumerate(
                _parse_declarations(element.get("style", ""))
            )
        ]
        resolved: dict[str, str] = {}
        for important, _, _, _, prop, value in sorted(entries + inline):
            resolved.pop(prop, None)
            resolved[prop] = f"{value} {_IMPORTANT}" if important else value
        element["style"] = "; ".join(f"{prop}: {value}" for prop, value in resolved.items())
    return str(soup)


def _render(template_path: str, template_name: str, data: dict[str, Any]) -> str:
    directory, filename = os.path.split(os.path.abspath(template_path))
    env = Environment(
        loader=FileSystemLoader(directory),
        autoescape=True,
        keep_trailing_newline=True,
    )
    template = env.get_template(filename)
    if template_name in template.blocks:
        return "".join(template.blocks[template_name](template.new_context(data)))
    if template_name == filename:
        return template.render(data)
    raise ValueError(
        f'template "{template_name}" is not defined in {template_path}'
    )


class Mailer:
    """Renders HTML and plain-text templates and sends them over SMTP."""

    def __init__(
        self,
        domain: str,
        host: str,
        port: int,
        username: str,
        password: str,
        encryption: str,
        from_address: str,
        from_name: str,
    ) -> None:
        self.domain = domain
        self.host = host
        self.port = port
        self.username = username
        self._password = password
        self.encryption = encryption_from_name(encryption)
        self.from_address = from_address
        self.from_name = from_name

    def build_html_message(self, template_path: str, template_name: str, msg: Message) -> str:
        """Render the named HTML template and inline its CSS."""
        return inline_css(_render(template_path, template_name, msg.template_data()))

    def build_plain_text_message(
        self, template_path: str, template_name: str, msg: Message
    ) -> str:
        """Render the named plain-text template."""
        return _render(template_path, template_name, msg.template_data())

    def _connect(self) -> smtplib.SMTP:
        if self.encryption is Encryption.SSL_TLS:
            server: smtplib.SMTP = smtplib.SMTP_SSL(self.host, self.port, timeout=SMTP_TIMEOUT)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT)
            if self.encryption is Encryption.STARTTLS:
                server.starttls()
        if self.username:
            server.login(self.username, self._password)
        return server

    def send_smtp_message(self, template_to_render: str, template_name: str, msg: Message) -> None:
        """Render <template_to_render>.html.gohtml and .plain.gohtml and send msg."""
        msg = dataclasses.replace(
            msg,
            from_address=msg.from_address or self.from_address,
            from_name=msg.from_name or self.from_name,
            data_map=msg.data_map if msg.data_map is not None else {"message": msg.data},
        )
        html_body = self.build_html_message(
            f"{template_to_render}.html.gohtml", template_name, msg
        )
        plain_body = self.build_plain_text_message(
            f"{template_to_render}.plain.gohtml", template_name, msg
        )

        email = EmailMessage()
        email["From"] = msg.from_address
        email["To"] = msg.to
        email["Subject"] = msg.subject
        email.set_content(plain_body)
        email.add_alternative(html_body, subtype="html")
        for path in msg.attachments:
            mime, _ = mimetypes.guess_type(path)
            maintype, _, subtype = (mime or "application/octet-stream").partition("/")
            with open(path, "rb") as handle:
                email.add_attachment(
                    handle.read(),
                    maintype=maintype,
                    subtype=subtype,
                    filename=os.path.basename(path),
                )

        server = self._connect()
        try:
            server.send_message(email)
        finally:
            server.quit()