from unittest.mock import patch

import pytest

from tablebook.core.exceptions import DependencyFailureException
from tablebook.services import email as email_module
from tablebook.services.email import (
    ConsoleEmailDispatcher,
    NotificationDispatcher,
    ResendEmailDispatcher,
    build_dispatcher,
    html_to_text,
)


def test_html_to_text_strips_markup():
    assert html_to_text("<p>Table <strong>T1</strong></p>\n<p>confirmed</p>") == "Table T1 confirmed"


def test_resend_dispatcher_requires_an_api_key():
    with patch.object(email_module.settings, "resend_api_key", None):
        with pytest.raises(DependencyFailureException):
            ResendEmailDispatcher()


def test_resend_dispatcher_sends_html_and_text():
    dispatcher = ResendEmailDispatcher(api_key="re_test", from_email="Tablebook <noreply@tablebook.test>")
    with patch("resend.Emails.send", return_value={"id": "email-1"}) as send:
        assert dispatcher.send("dana@diner.test", "Confirmed", "<p>See you</p>")

    payload = send.call_args.args[0]
    assert payload["to"] == ["dana@diner.test"]
    assert payload["from"] == "Tablebook <noreply@tablebook.test>"
    assert payload["text"] == "See you"


def test_resend_errors_become_dependency_failures():
    dispatcher = ResendEmailDispatcher(api_key="re_test")
    with patch("resend.Emails.send", side_effect=RuntimeError("429 rate limited")):
        with pytest.raises(DependencyFailureException) as exc_info:
            dispatcher.send("dana@diner.test", "Confirmed", "<p>See you</p>")
    assert exc_info.value.status_code == 503


def test_console_dispatcher_always_accepts():
    assert ConsoleEmailDispatcher().send("dana@diner.test", "Hi", "<p>Hi</p>")


def test_build_dispatcher_falls_back_to_console():
    with patch.object(email_module.settings, "resend_api_key", None):
        dispatcher = build_dispatcher()
    assert isinstance(dispatcher, ConsoleEmailDispatcher)
    assert isinstance(dispatcher, NotificationDispatcher)
