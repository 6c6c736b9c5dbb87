import smtplib

import pytest

from seerr_users.services.notification_service import NotificationError, NotificationService, mail_language, translate


class RecordingMailer:
    def __init__(self, error=None):
        self.messages = []
        self.error = error

    def send(self, message):
        if self.error:
            raise self.error
        self.messages.append(message)


def test_translate_fills_placeholders():
    assert translate('generatedpassword', 'greeting', 'en', name='John') == 'Hi, John.'
    assert translate('generatedpassword', 'greeting', 'fr-FR', name='John') == 'Bonjour, John.'


def test_translate_falls_back_to_english():
    assert translate('generatedpassword', 'greeting', 'de', name='Jo') == 'Hi, Jo.'
    assert translate('generatedpassword', 'greeting', None, name='Jo') == 'Hi, Jo.'


def test_mail_language_resolves_through_babel(app):
    assert mail_language('fr-FR') == 'fr'
    assert mail_language('en_GB') == 'en'
    assert mail_language(None) == 'en'
    assert mail_language('zz') == 'en'
    assert mail_language('not a locale') == 'en'


def test_send_templated_resolves_regional_locale(app):
    app.config.update(MAIL_ENABLED=True, MAIL_SENDER='seerr@example.com')
    mailer = RecordingMailer()

    NotificationService(mailer=mailer).send_templated(
        'generatedpassword', 'jean@example.com', 'fr-CA', {'username': 'jean', 'password': 'x'})

    assert mailer.messages[0]['Subject'] == 'Jean, votre compte Jellyfin a été créé.'


def test_send_templated_renders_both_parts(app):
    app.config.update(MAIL_ENABLED=True, APPLICATION_TITLE='Seerr', APPLICATION_URL='https://seerr.example.com',
                      MAIL_SENDER='seerr@example.com')
    mailer = RecordingMailer()

    NotificationService(mailer=mailer).send_templated(
        'generatedpassword', 'john@example.com', 'fr', {'username': 'john.doe', 'password': 'Pa55word'})

    message = mailer.messages[0]
    assert message['To'] == 'john@example.com'
    assert message['From'] == 'seerr@example.com'
    assert message['Subject'] == 'John, votre compte Jellyfin a été créé.'
    text = message.get_body(preferencelist=('plain',)).get_content()
    html = message.get_body(preferencelist=('html',)).get_content()
    assert 'john.doe | Pa55word' in text
    assert 'https://seerr.example.com' in html


def test_send_templated_disabled(app):
    with pytest.raises(NotificationError):
        NotificationService(mailer=RecordingMailer()).send_templated(
            'generatedpassword', 'john@example.com', 'en', {'username': 'john', 'password': 'x'})


def test_send_templated_smtp_failure(app):
    app.config['MAIL_ENABLED'] = True
    mailer = RecordingMailer(error=smtplib.SMTPServerDisconnected('gone'))
    with pytest.raises(NotificationError):
        NotificationService(mailer=mailer).send_templated(
            'generatedpassword', 'john@example.com', 'en', {'username': 'john', 'password': 'x'})


def test_async_send_is_skipped_when_disabled(app):
    mailer = RecordingMailer()
    thread = NotificationService(mailer=mailer).send_templated_async(
        'generatedpassword', 'john@example.com', 'en', {'username': 'john', 'password': 'x'})
    assert thread is None
    assert mailer.messages == []
