import os
import logging

import click

from seerr_users import create_app, db
from seerr_users.models import Account, AccountSettings, AccountType, EventType, HistoryLog, Setting, SettingValueType
from seerr_users.permissions import Permission
from seerr_users.utils.helpers import log_event


class ColoredFormatter(logging.Formatter):
    """Custom formatter to add colors to log levels"""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        formatted = super().format(record)
        level_name = record.levelname
        if level_name in self.COLORS:
            colored_level = f"{self.COLORS[level_name]}{level_name}{self.COLORS['RESET']}"
            return formatted.replace(level_name, colored_level, 1)
        return formatted


def setup_colored_logging(app):
    """Colored console output for the root and app loggers (Docker logs keep ANSI colors)"""
    if os.getenv('NO_COLOR'):
        return
    colored_formatter = ColoredFormatter(
        fmt='%(asctime)s %(name)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    for handler in logging.getLogger().handlers + app.logger.handlers:
        if type(handler) is logging.StreamHandler:
            handler.setFormatter(colored_formatter)


app = create_app()
setup_colored_logging(app)


@app.shell_context_processor
def make_shell_context():
    return {
        'db': db,
        'Setting': Setting,
        'Account': Account,
        'HistoryLog': HistoryLog,
        'Permission': Permission,
    }


@app.cli.command("init-db")
def init_db_command():
    """
    Creates all tables directly. Migrations (`flask db upgrade`) are preferred
    for ongoing schema changes.
    """
    db.create_all()
    click.echo("Initialized the database.")


@app.cli.command("create-owner")
@click.option('--email', required=True, help='Owner login email.')
@click.option('--password', required=True, prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--username', default=None, help='Display name.')
@click.option('--plex-token', default=None, help='Plex token used for imports and watchlists.')
def create_owner_command(email, password, username, plex_token):
    """Creates the owner account (id 1) with full permissions."""
    owner_id = app.config.get('OWNER_ACCOUNT_ID', 1)
    if db.session.get(Account, owner_id) is not None:
        click.echo(f"Owner account {owner_id} already exists.")
        return

    owner = Account(
        id=owner_id,
        email=email,
        username=username,
        plex_token=plex_token,
        user_type=AccountType.PLEX if plex_token else AccountType.LOCAL,
        permissions=int(Permission.ADMIN),
    )
    owner.set_password(password)
    owner.settings = AccountSettings(locale=app.config.get('LOCALE', 'en'))
    db.session.add(owner)
    db.session.commit()
    click.echo(f"Created owner account {owner.id} ({owner.email}).")


@app.cli.command("set-setting")
@click.argument('key')
@click.argument('value')
@click.option('--type', 'value_type', default='string',
              type=click.Choice([t.value for t in SettingValueType]), help='How the value is stored.')
def set_setting_command(key, value, value_type):
    """Stores a setting row. Upper-case keys override app.config at startup."""
    setting = Setting.set(key, value, SettingValueType(value_type))
    shown = '********' if setting.value_type == SettingValueType.SECRET else setting.get_value()
    log_event(EventType.SETTING_CHANGE, f"Setting '{key}' updated from the CLI.", details={'key': key})
    click.echo(f"{key} = {shown}")


if __name__ == '__main__':
    # Development server only; run under Gunicorn in production
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 5055)), debug=app.debug)
