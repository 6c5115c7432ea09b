"""CLI tools for local CRM administration."""

import click

from app.core.config import get_settings
from app.core.database import Base, SessionLocal, engine
from app.crm.seed import create_user as create_crm_user
from app.crm.seed import seed_demo_data
from app.logging import configure_logging


@click.group()
def cli():
    """Local CRM CLI tools."""
    configure_logging()


@cli.command()
def init_db():
    """
    Create any missing tables from the ORM metadata.

    Example:
        python -m app.cli init-db
    """
    Base.metadata.create_all(bind=engine)
    click.echo(f"✓ Schema ready at {engine.url.render_as_string(hide_password=True)}")


@cli.command()
@click.option("--admin-email", default=None, help="Admin login (default: SEED_ADMIN_EMAIL)")
@click.option("--admin-password", default=None, help="Admin password (default: SEED_ADMIN_PASSWORD)")
def seed(admin_email: str | None, admin_password: str | None):
    """
    Wipe all CRM data and insert the demo data set.

    Example:
        python -m app.cli seed
    """
    settings = get_settings()
    email = admin_email or settings.seed_admin_email
    password = admin_password or settings.seed_admin_password

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        summary = seed_demo_data(db, admin_email=email, admin_password=password)
    finally:
        db.close()

    click.echo(f"✓ Seed data inserted ({summary.deals} deals)")
    click.echo(f"  Default admin: {summary.admin_email} / {password}")


@cli.command()
@click.option("--email", required=True, help="Login email")
@click.option("--name", required=True, help="Display name")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Login password")
def create_user(email: str, name: str, password: str):
    """
    Create a user that can sign in to the CRM.

    Example:
        python -m app.cli create-user --email "sam@localcrm.test" --name "Sam Sales"
    """
    if len(password) < 6:
        raise click.BadParameter("must be at least 6 characters", param_hint="--password")

    db = SessionLocal()
    try:
        user = create_crm_user(db, email=email.lower(), password=password, name=name)
        click.echo(f"✓ Created user: {user.email}")
        click.echo(f"  ID: {user.id}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
