from unittest import mock

import pytest
from bs4 import BeautifulSoup

from wotop.mailer import (
    Encryption,
    Mailer,
    Message,
    encryption_from_name,
    inline_css,
)

HTML_TEMPLATE = (
    "{% block body %}<html><head><style>p { color: red; } .big { font-size: 20px; }"
    "</style></head><body><p class=\"big\">Hi {{ message }}</p></body></html>"
    "{% endblock %}"
)
PLAIN_TEMPLATE = "{% block body %}Hi {{ message }}{% endblock %}"


def _style(element):
    result = {}
    for part in element["style"].split(";"):
        prop, _, value = part.partition(":")
        if prop.strip():
            result[prop.strip()] = value.strip()
    return result


def _mailer(encryption="tls"):
    password = "password"
    return Mailer(
        "example.com",
        "smtp.example.com",
        587,
        "user",
        password,
        encryption,
        "noreply@example.com",
        "Sender",
    )


@pytest.fixture
def templates(tmp_path):
    (tmp_path / "welcome.html.gohtml").write_text(HTML_TEMPLATE)
    (tmp_path / "welcome.plain.gohtml").write_text(PLAIN_TEMPLATE)
    return tmp_path / "welcome"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("tls", Encryption.STARTTLS),
        ("ssl", Encryption.SSL_TLS),
        ("none", Encryption.NONE),
        ("", Encryption.NONE),
        ("anything", Encryption.STARTTLS),
    ],
)
def test_encryption_from_name(name, expected):
    assert encryption_from_name(name) is expected


def test_inline_css_applies_rules_and_removes_style():
    html = "<html><head><style>p { color: red; }</style></head><body><p>x</p></body></html>"
    soup = BeautifulSoup(inline_css(html), "html.parser")
    assert _style(soup.p) == {"color": "red"}
    assert soup.style is None


def test_inline_css_specificity_and_inline_precedence():
    html = (
        "<style>#a { color: blue; } p { color: red; margin: 0; }</style>"
        "<p id=\"a\" class=\"k\" style=\"margin: 4px\">x</p>"
    )
    soup = BeautifulSoup(inline_css(html), "html.parser")
    assert _style(soup.p) == {"color": "blue", "margin": "4px"}
    assert soup.p["class"] == ["k"]


def test_inline_css_keeps_important():
    html = "<style>p { color: red !important; }</style><p style=\"color: blue\">x</p>"
    soup = BeautifulSoup(inline_css(html), "html.parser")
    assert _style(soup.p) == {"color": "red !important"}


def test_inline_css_keeps_uninlineable_rules():
    html = (
        "<style>a:hover { color: red; } @media print { p { color: blue; } }</style>"
        "<a>x</a><p>y</p>"
    )
    soup = BeautifulSoup(inline_css(html), "html.parser")
    assert "a:hover" in soup.style.string
    assert "@media print" in soup.style.string
    assert not soup.a.has_attr("style")
    assert not soup.p.has_attr("style")


def test_build_html_message_renders_block_and_escapes(templates):
    msg = Message(data="<b>Ann</b>")
    html = _mailer().build_html_message(f"{templates}.html.gohtml", "body", msg)
    soup = BeautifulSoup(html, "html.parser")
    assert soup.p.get_text() == "Hi <b>Ann</b>"
    assert soup.p.b is None
    assert _style(soup.p) == {"color": "red", "font-size": "20px"}


def test_build_plain_text_message_uses_data_map(templates):
    msg = Message(data="ignored", data_map={"message": "Bob"})
    text = _mailer().build_plain_text_message(f"{templates}.plain.gohtml", "body", msg)
    assert text == "Hi Bob"


def test_template_by_file_name_renders_whole_file(tmp_path):
    path = tmp_path / "note.plain.gohtml"
    path.write_text("Dear {{ message }}\n")
    text = _mailer().build_plain_text_message(str(path), "note.plain.gohtml", Message(data="Cy"))
    assert text == "Dear Cy\n"


def test_unknown_template_name_raises(templates):
    with pytest.raises(ValueError):
        _mailer().build_plain_text_message(f"{templates}.plain.gohtml", "missing", Message())


def test_missing_template_file_raises(tmp_path):
    with pytest.raises(LookupError):
        _mailer().build_plain_text_message(str(tmp_path / "nope.gohtml"), "body", Message())


@mock.patch("wotop.mailer.smtplib.SMTP")
def test_send_smtp_message(smtp_cls, templates, tmp_path):
    attachment = tmp_path / "report.txt"
    attachment.write_text("report body")
    msg = Message(
        to="someone@example.com",
        subject="Welcome",
        data="Dee",
        attachments=[str(attachment)],
    )
    _mailer("tls").send_smtp_message(str(templates), "body", msg)

    server = smtp_cls.return_value
    smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=10)
    server.starttls.assert_called_once_with()
    server.login.assert_called_once_with("user", "password")
    server.quit.assert_called_once_with()
    sent = server.send_message.call_args[0][0]
    assert sent["From"] == "noreply@example.com"
    assert sent["To"] == "someone@example.com"
    assert sent["Subject"] == "Welcome"
    bodies = {part.get_content_type(): part for part in sent.walk()}
    assert bodies["text/plain"].get_content().strip() == "Hi Dee"
    assert "Hi Dee" in bodies["text/html"].get_content()
    assert [p.get_filename() for p in sent.iter_attachments()] == ["report.txt"]
    assert msg.from_address == ""


@mock.patch("wotop.mailer.smtplib.SMTP")
def test_send_without_encryption_skips_starttls(smtp_cls, templates):
    mailer = _mailer("none")
    msg = Message(
        to="someone@example.com",
        subject="Hi",
        data="Eve",
        from_address="boss@example.com",
    )
    mailer.send_smtp_message(str(templates), "body", msg)
    server = smtp_cls.return_value
    server.starttls.assert_not_called()
    sent = server.send_message.call_args[0][0]
    assert sent["From"] == "boss@example.com"
    assert sent["To"] == "someone@example.com"
    assert sent["Subject"] == "Hi"
    assert msg.from_address == "boss@example.com"

    expected_plain = mailer.build_plain_text_message(f"{templates}.plain.gohtml", "body", msg)
    assert expected_plain == "Hi Eve"
    bodies = {part.get_content_type(): part for part in sent.walk()}
    assert bodies["text/plain"].get_content().strip() == expected_plain