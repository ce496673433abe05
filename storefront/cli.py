import click
from flask.cli import with_appcontext

from storefront import db
from storefront.models import AdminUser


def create_admin_user(email, password):
    """Create an admin account; returns (user, created)"""
    email = email.strip().lower()
    user = AdminUser.query.filter_by(email=email).first()
    if user:
        return user, False

    user = AdminUser(email=email)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user, True


@click.command('create-admin')
@click.argument('email')
@click.password_option()
@with_appcontext
def create_admin_command(email, password):
    """Create an admin account for the back-office."""
    user, created = create_admin_user(email, password)
    if created:
        click.echo(f'Admin user created: {user.email}')
    else:
        click.echo(f'Admin user already exists: {user.email}')


def register_commands(app):
    app.cli.add_command(create_admin_command)
