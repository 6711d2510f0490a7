import click
from flask.cli import with_appcontext

from mindnav.extensions import db
from mindnav.models import User
from mindnav.services.export import build_export, export_filename, render_export
from mindnav.services.map_store import MapLoadError, MapNotFound, load_map
from mindnav.services.subscriptions import activate_premium, revoke_premium


def _find_user(email: str) -> User:
    email = (email or '').strip().lower()
    if not email:
        raise click.ClickException('Email is required.')
    user = User.query.filter_by(email=email).first()
    if user is None:
        raise click.ClickException(f"No user with email '{email}'.")
    return user


@click.command('create-user')
@click.option('--email', prompt=True, help='Account email')
@click.option(
    '--password',
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help='Account password (will not be echoed)'
)
@with_appcontext
def create_user_command(email: str, password: str) -> None:
    """Create (or reset the password of) a user account."""

    email = (email or '').strip().lower()
    if not email:
        raise click.ClickException('Email is required.')
    if len(password or '') < 8:
        raise click.ClickException('Password must be at least 8 characters.')

    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(email=email, is_active=True)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        click.echo(f"Created user '{user.email}'.")
        return

    user.is_active = True
    user.set_password(password)
    db.session.commit()
    click.echo(f"Updated user '{user.email}'.")


@click.command('grant-premium')
@click.argument('email')
@with_appcontext
def grant_premium_command(email: str) -> None:
    """Mark a user as premium without going through Stripe."""

    user = _find_user(email)
    activate_premium(user.id)
    click.echo(f"Premium granted to '{user.email}'.")


@click.command('revoke-premium')
@click.argument('email')
@with_appcontext
def revoke_premium_command(email: str) -> None:
    """Clear a user's premium flag."""

    user = _find_user(email)
    if revoke_premium(user.id):
        click.echo(f"Premium revoked for '{user.email}'.")
    else:
        click.echo(f"'{user.email}' is not premium; nothing to do.")


@click.command('export-map')
@click.argument('email')
@click.argument('map_id', type=int)
@click.option('--output', '-o', type=click.Path(dir_okay=False, writable=True), help='Write to this file instead of stdout')
@with_appcontext
def export_map_command(email: str, map_id: int, output) -> None:
    """Export a saved map as the same JSON document the web export produces."""

    user = _find_user(email)
    try:
        record, graph = load_map(user.id, map_id)
    except MapNotFound:
        raise click.ClickException(f'Map {map_id} not found for {user.email}.')
    except MapLoadError as exc:
        raise click.ClickException(f'Map {map_id} is malformed: {exc}')

    rendered = render_export(build_export(record.name, graph))
    if not output:
        click.echo(rendered)
        return

    with open(output, 'w', encoding='utf-8') as handle:
        handle.write(rendered)
    click.echo(f'Wrote {output} (suggested name: {export_filename(record.name)}).')
