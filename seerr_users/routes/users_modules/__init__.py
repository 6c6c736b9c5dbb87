# File: seerr_users/routes/users_modules/__init__.py
"""
User administration API, one blueprint split into focused modules:
- main: listing, single-record views, local signup, requests and quota
- permissions: bulk and single permission/username updates
- delete: account deletion saga
- imports: Plex and Jellyfin reconciliation
- provisioning: Jellyfin account creation and credential resend
- watch: Tautulli watch data and Plex watchlist
"""

from flask import Blueprint

users_bp = Blueprint("users", __name__)

# Import submodules so their routes are registered to the blueprint
from . import main
from . import permissions
from . import delete
from . import imports
from . import provisioning
from . import watch
