import functools
import click
from sqlalchemy.exc import SQLAlchemyError

from academy_backend.database import get_db, get_engine
from academy_backend.errors import AcademyError
from academy_backend.logging_config import configure_logging
from academy_backend.interface.users import UserCreate, UserPermissionsUpdate
from academy_backend.model import Base
from academy_backend.permissions.migration import find_unmigrated_users, migrate_legacy_admins
from academy_backend.permissions.principal import Capability, PermissionLevel, Principal
from academy_backend.services.accounts import create_user, update_permissions

# Commands run from a trusted shell act with every capability
SYSTEM_PRINCIPAL = Principal(permission_level=PermissionLevel.super_admin, capabilities=frozenset(Capability))

def handle_domain_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AcademyError as e:
            click.echo(f"[{click.style(e.code, fg='red')}] {e.message}")
            raise SystemExit(1)
        except SQLAlchemyError as e:
            click.echo(f"[{click.style('database', fg='red')}] {e.__class__.__name__}: {e}")
            raise SystemExit(1)

    return wrapper

@click.command()
def init_db():
    """Create all tables on the configured database."""
    Base.metadata.create_all(get_engine())
    click.echo(click.style("Database schema created", fg="green"))

@click.command()
@click.option("--email", "-e", prompt=True)
@click.option("--given-name", "-g", default=None)
@click.option("--family-name", "-f", default=None)
@click.option("--level", "-l", type=click.Choice([l.value for l in PermissionLevel]), default=PermissionLevel.member.value)
@click.option("--premium", is_flag=True, default=False)
@handle_domain_errors
def add_user(email, given_name, family_name, level, premium):
    """Register a user record, e.g. to bootstrap the first super admin."""
    with next(get_db()) as db:
        user = create_user(db, UserCreate(
            email=email,
            given_name=given_name,
            family_name=family_name,
            permission_level=PermissionLevel(level),
            is_premium=premium
        ))
        click.echo(f"Created user {click.style(user.id, fg='green')} ({user.email}, {user.permission_level})")

@click.command()
@click.argument("user_id")
@click.argument("level", type=click.Choice([l.value for l in PermissionLevel]))
@handle_domain_errors
def set_level(user_id, level):
    with next(get_db()) as db:
        user = update_permissions(db, SYSTEM_PRINCIPAL, user_id, UserPermissionsUpdate(permission_level=PermissionLevel(level)))
        click.echo(f"User {user.id} is now {click.style(user.permission_level, fg='green')}")

@click.command()
@click.argument("user_id")
@click.option("--revoke", is_flag=True, default=False, help="Remove premium membership instead of granting it")
@handle_domain_errors
def grant_premium(user_id, revoke):
    with next(get_db()) as db:
        user = update_permissions(db, SYSTEM_PRINCIPAL, user_id, UserPermissionsUpdate(is_premium=not revoke))
        state = "premium" if user.is_premium else "regular"
        click.echo(f"User {user.id} is now a {click.style(state, fg='green')} member")

@click.command()
@click.option("--dry-run", is_flag=True, default=False, help="Only list accounts that still rely on the legacy flag")
@handle_domain_errors
def migrate_admins(dry_run):
    """Fold the legacy is_admin flag into permission levels."""
    with next(get_db()) as db:
        if dry_run:
            for user in find_unmigrated_users(db):
                click.echo(f"{user.id}: is_admin={user.is_admin} permission_level={user.permission_level}")
            return

        migrated = migrate_legacy_admins(db)
        click.echo(click.style(f"Migrated {len(migrated)} account(s)", fg="green"))

@click.group()
def admin():
    configure_logging()

admin.add_command(init_db,"init-db")
admin.add_command(add_user,"add-user")
admin.add_command(set_level,"set-level")
admin.add_command(grant_premium,"grant-premium")
admin.add_command(migrate_admins,"migrate-legacy-admins")
