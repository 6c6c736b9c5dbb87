# File: seerr_users/services/notification_service.py
import smtplib
import threading
from email.message import EmailMessage
from typing import Any, Dict, Optional

from babel.core import UnknownLocaleError
from flask import current_app, render_template
from flask_babel import force_locale, get_locale

from seerr_users.models import Setting
from seerr_users.utils.helpers import get_first_name

# Backend strings for the "generated password" mail, keyed by locale.
GENERATED_PASSWORD_MESSAGES = {
    'en': {
        'subject': '{name}, your Jellyfin account has been created.',
        'greeting': 'Hi, {name}.',
        'accessInfo': 'You now have access to Jellyfin and {applicationTitle} as they share the same account, with the following credentials:',
        'credentials': '{username} | {password}',
        'passwordInfo': 'You can change your password at any time from your "Profile" page directly in Jellyfin.',
        'jellyseerrInfo': 'You can request movies and shows on {applicationTitle} with the button below or at {domain}',
        'jellyfinInfo': 'You can access your account and play media on Jellyfin with the button below or at {jellyfinUrl}',
        'openJellyseerr': 'Open {applicationTitle}',
        'openJellyfin': 'Open {jellyfinName}',
        'downloads': 'Jellyfin is available for free on the following platforms:',
        'warning': 'Your account is strictly personal and should not be shared. Use it as much as you like within your household, but suspicious activity may result in a permanent ban.',
    },
    'fr': {
        'subject': '{name}, votre compte Jellyfin a été créé.',
        'greeting': 'Bonjour, {name}.',
        'accessInfo': 'Vous avez maintenant accès à Jellyfin et à {applicationTitle}, qui partagent le même compte, avec les identifiants suivants :',
        'credentials': '{username} | {password}',
        'passwordInfo': 'Vous pouvez changer votre mot de passe à tout moment depuis votre page « Profil » dans Jellyfin.',
        'jellyseerrInfo': 'Vous pouvez demander des films et des séries sur {applicationTitle} avec le bouton ci-dessous ou sur {domain}',
        'jellyfinInfo': 'Vous pouvez accéder à votre compte et lire vos médias sur Jellyfin avec le bouton ci-dessous ou sur {jellyfinUrl}',
        'openJellyseerr': 'Ouvrir {applicationTitle}',
        'openJellyfin': 'Ouvrir {jellyfinName}',
        'downloads': 'Jellyfin est disponible gratuitement sur les plateformes suivantes :',
        'warning': 'Votre compte est strictement personnel et ne doit pas être partagé. Utilisez-le librement au sein de votre foyer, mais toute activité suspecte peut entraîner un bannissement définitif.',
    },
}

TEMPLATE_CATALOGS = {
    'generatedpassword': GENERATED_PASSWORD_MESSAGES,
}


class NotificationError(Exception):
    pass


def translate(template: str, key: str, locale: Optional[str], **fields) -> str:
    """Message for ``locale`` (falling back to English) with ``{placeholders}`` filled in."""
    catalog = TEMPLATE_CATALOGS[template]
    language = (locale or 'en').split('-')[0].split('_')[0].lower()
    messages = catalog.get(language) or catalog['en']
    text = messages.get(key) or catalog['en'][key]
    for name, value in fields.items():
        text = text.replace('{' + name + '}', '' if value is None else str(value))
    return text


def mail_language(locale: Optional[str]) -> str:
    """Language of ``locale`` as Babel parses it ('fr-FR' -> 'fr'). Unknown tags become 'en'."""
    try:
        with force_locale((locale or 'en').replace('-', '_')):
            return get_locale().language
    except (ValueError, UnknownLocaleError):
        return 'en'


class Mailer:
    """Sends one message per SMTP connection."""

    def __init__(self, host: str, port: int, use_tls: bool = False,
                 username: Optional[str] = None, password: Optional[str] = None, timeout: int = 30):
        self.host = host
        self.port = port
        self.use_tls = use_tls
        self.username = username
        self.password = password
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> 'Mailer':
        return cls(
            host=Setting.get('MAIL_SERVER', 'localhost'),
            port=int(Setting.get('MAIL_PORT', 25)),
            use_tls=Setting.get_bool('MAIL_USE_TLS', False),
            username=Setting.get('MAIL_USERNAME'),
            password=Setting.get('MAIL_PASSWORD'),
        )

    def send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as conn:
            if self.use_tls:
                conn.starttls()
            if self.username:
                conn.login(self.username, self.password or '')
            conn.send_message(message)


class NotificationService:
    """Renders localized email templates and delivers them over SMTP"""

    def __init__(self, mailer: Optional[Mailer] = None):
        self._mailer = mailer

    @property
    def mailer(self) -> Mailer:
        if self._mailer is None:
            self._mailer = Mailer.from_settings()
        return self._mailer

    @staticmethod
    def is_enabled() -> bool:
        return Setting.get_bool('MAIL_ENABLED', False)

    def send_templated(self, template: str, recipient: str, locale: Optional[str], fields: Dict[str, Any]) -> None:
        """Render ``email/<template>`` in ``locale`` and send it. Raises NotificationError on failure."""
        if not self.is_enabled():
            raise NotificationError('Email notifications are disabled.')
        if not recipient:
            raise NotificationError('No recipient address.')

        context = self._build_context(template, locale, fields)
        message = EmailMessage()
        message['Subject'] = context['translations']['subject']
        message['From'] = Setting.get('MAIL_SENDER', 'no-reply@localhost')
        message['To'] = recipient
        message.set_content(render_template(f'email/{template}.txt', **context))
        message.add_alternative(render_template(f'email/{template}.html', **context), subtype='html')

        try:
            self.mailer.send(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f'Could not send {template} mail to {recipient}: {e}') from e
        current_app.logger.info(f"NotificationService: sent '{template}' mail to {recipient}")

    def send_templated_async(self, template: str, recipient: str, locale: Optional[str],
                             fields: Dict[str, Any]) -> Optional[threading.Thread]:
        """Fire-and-forget variant. Failures are logged, never raised to the caller."""
        if not self.is_enabled():
            current_app.logger.warning(f"NotificationService: email disabled, '{template}' mail to {recipient} not sent")
            return None
        app = current_app._get_current_object()

        def _run():
            with app.app_context():
                try:
                    self.send_templated(template, recipient, locale, fields)
                except NotificationError as e:
                    app.logger.error(f"NotificationService: {e}")
                except Exception as e:
                    app.logger.error(f"NotificationService: unexpected error sending '{template}': {e}", exc_info=True)

        thread = threading.Thread(target=_run, name=f'mail-{template}', daemon=True)
        thread.start()
        return thread

    def _build_context(self, template: str, locale: Optional[str], fields: Dict[str, Any]) -> Dict[str, Any]:
        username = fields.get('username') or ''
        first_name = get_first_name(username)
        application_title = Setting.get('APPLICATION_TITLE', 'Jellyseerr')
        application_url = Setting.get('APPLICATION_URL', '')
        jellyfin_url = Setting.get('JELLYFIN_EXTERNAL_URL') or Setting.get('JELLYFIN_URL', '')
        jellyfin_name = Setting.get('JELLYFIN_NAME') or 'Jellyfin'

        placeholders = {
            'name': first_name,
            'username': username,
            'password': fields.get('password'),
            'applicationTitle': application_title,
            'domain': application_url,
            'jellyfinUrl': jellyfin_url,
            'jellyfinName': jellyfin_name,
        }
        catalog = TEMPLATE_CATALOGS[template]['en']
        language = mail_language(locale)
        translations = {key: translate(template, key, language, **placeholders) for key in catalog}

        return {
            **fields,
            'first_name': first_name,
            'application_title': application_title,
            'application_url': application_url,
            'jellyfin_url': jellyfin_url,
            'translations': translations,
        }
