"""
Admin access gate

Runs before every request. Admin pages need a signed-in session; a signed-in
admin who opens the login page is sent on to the dashboard.
"""
import logging
from enum import Enum
from typing import Callable

from flask import redirect, request
from flask_login import current_user

from storefront.services.error_handler import ErrorCategory, record_error

logger = logging.getLogger(__name__)

ADMIN_PREFIX = '/admin'
LOGIN_PATH = '/admin/login'
LANDING_PATH = '/admin/dashboard'

# Never session-checked
EXCLUDED_PREFIXES = ('/static/', '/favicon.ico')


class SessionStatus(Enum):
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"
    CHECK_FAILED = "check_failed"


class GateDecision(Enum):
    ALLOW = "allow"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_LANDING = "redirect_landing"


def is_excluded(path: str) -> bool:
    return path.startswith(EXCLUDED_PREFIXES)


def is_admin_path(path: str) -> bool:
    return path == ADMIN_PREFIX or path.startswith(ADMIN_PREFIX + '/')


def decide(path: str, status: SessionStatus) -> GateDecision:
    """Pure routing decision for a path and an already-resolved session"""
    if is_excluded(path):
        return GateDecision.ALLOW

    if status == SessionStatus.AUTHENTICATED:
        if path == LOGIN_PATH:
            return GateDecision.REDIRECT_LANDING
        return GateDecision.ALLOW

    # UNAUTHENTICATED and CHECK_FAILED are handled the same way: fail closed
    if is_admin_path(path) and path != LOGIN_PATH:
        return GateDecision.REDIRECT_LOGIN
    return GateDecision.ALLOW


def evaluate(path: str, resolve_session: Callable[[], SessionStatus]) -> GateDecision:
    """
    Decide for path, resolving the session only when the outcome depends on it.
    Outside the admin section every outcome is ALLOW.
    """
    if is_excluded(path) or not is_admin_path(path):
        return GateDecision.ALLOW
    return decide(path, resolve_session())


def resolve_session() -> SessionStatus:
    """Check the session cookie through Flask-Login"""
    try:
        if current_user.is_authenticated:
            return SessionStatus.AUTHENTICATED
        return SessionStatus.UNAUTHENTICATED
    except Exception as e:
        # Cookie decoding or the user lookup failed
        record_error(e, ErrorCategory.AUTHENTICATION, {'path': request.path})
        return SessionStatus.CHECK_FAILED


def install_gate(app):
    @app.before_request
    def admin_gate():
        decision = evaluate(request.path, resolve_session)

        if decision == GateDecision.REDIRECT_LOGIN:
            logger.info(f'No session for {request.path}, redirecting to login', extra={
                'event_type': 'gate_redirect',
                'target': LOGIN_PATH,
            })
            return redirect(LOGIN_PATH)

        if decision == GateDecision.REDIRECT_LANDING:
            logger.info('Already signed in, redirecting to dashboard', extra={
                'event_type': 'gate_redirect',
                'target': LANDING_PATH,
            })
            return redirect(LANDING_PATH)

        return None
