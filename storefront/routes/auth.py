from flask import Blueprint, render_template, redirect, url_for, flash, request, current_app
from flask_login import login_user, logout_user, login_required
from sqlalchemy.exc import SQLAlchemyError
from storefront import db
from storefront.models import AdminUser
from storefront.services.error_handler import ErrorCategory, record_error
from storefront.services.gate import LANDING_PATH

bp = Blueprint('auth', __name__, url_prefix='/admin')


@bp.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'POST':
        email = (request.form.get('email') or '').strip().lower()
        password = request.form.get('password') or ''

        try:
            user = AdminUser.query.filter_by(email=email).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            record_error(e, ErrorCategory.AUTHENTICATION, {'email': email})
            flash('Sign-in is unavailable right now, please try again', 'error')
            return render_template('admin/login.html'), 503

        if user and user.check_password(password):
            login_user(user)
            current_app.logger.info(f'Admin signed in: {email}', extra={
                'event_type': 'admin_login',
                'user_id': user.id
            })
            return redirect(LANDING_PATH)

        current_app.logger.warning(f'Login failed for: {email}', extra={
            'event_type': 'admin_login_failed',
            'user_found': user is not None
        })
        flash('Invalid email or password', 'error')

    return render_template('admin/login.html')


@bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    flash('Signed out', 'info')
    return redirect(url_for('auth.login'))
