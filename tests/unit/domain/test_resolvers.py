"""Unit tests for mailer resolution."""

from types import SimpleNamespace

from mail_throttle.domain.throttling.resolvers import MailerResolver


def test_explicit_override_wins():
    job = SimpleNamespace(mailer="resend")
    assert MailerResolver.standard(override="ses", default="smtp").resolve(job) == "ses"


def test_job_mailer_before_wrappers():
    job = SimpleNamespace(mailer="resend", mailable=SimpleNamespace(mailer="ses"))
    assert MailerResolver.standard(default="smtp").resolve(job) == "resend"


def test_wrapped_mailable():
    job = SimpleNamespace(mailable=SimpleNamespace(mailer="ses"))
    assert MailerResolver.standard(default="smtp").resolve(job) == "ses"


def test_wrapped_notification():
    job = SimpleNamespace(notification=SimpleNamespace(mailer="postmark"))
    assert MailerResolver.standard(default="smtp").resolve(job) == "postmark"


def test_mailable_before_notification():
    job = SimpleNamespace(
        mailable=SimpleNamespace(mailer="ses"),
        notification=SimpleNamespace(mailer="postmark"),
    )
    assert MailerResolver.standard().resolve(job) == "ses"


def test_unset_mailers_fall_through_to_default():
    job = SimpleNamespace(
        mailer=None,
        mailable=SimpleNamespace(mailer=None),
        notification=SimpleNamespace(),
    )
    assert MailerResolver.standard(default="smtp").resolve(job) == "smtp"


def test_nothing_resolves_to_none():
    assert MailerResolver.standard().resolve(object()) is None


def test_custom_strategy_chain_short_circuits():
    calls = []

    def first(job):
        calls.append("first")
        return "a"

    def second(job):
        calls.append("second")
        return "b"

    assert MailerResolver([first, second]).resolve(object()) == "a"
    assert calls == ["first"]
