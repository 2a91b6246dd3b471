"""Application entry point."""
import os
import click
from flask.cli import with_appcontext
from dotenv import load_dotenv

# Load environment variables before the config classes read them
load_dotenv()

from churchconnect import create_app, db  # noqa: E402

# Create Flask app
app = create_app(os.getenv('FLASK_ENV', 'development'))

@app.cli.command()
@with_appcontext
def create_db():
    """Create database tables."""
    db.create_all()
    click.echo('Database tables created successfully!')

@app.cli.command()
@with_appcontext
def drop_db():
    """Drop all database tables."""
    if click.confirm('Are you sure you want to drop all tables?'):
        db.drop_all()
        click.echo('Database tables dropped successfully!')

@app.cli.command()
@with_appcontext
def init_db():
    """Create tables and the demo church with its admin."""
    from churchconnect.models import Church
    from churchconnect.services.seed_service import SeedService

    db.create_all()
    if Church.query.filter_by(subdomain=SeedService.DEMO_SUBDOMAIN).first():
        click.echo('Demo church already exists.')
        return

    church, admin = SeedService.seed_church()
    click.echo(f'Church created: {church.name} ({church.subdomain})')
    click.echo(f'Admin: {admin.email} / {SeedService.DEMO_PASSWORD}')

@app.cli.command()
@with_appcontext
def seed_all():
    """Seed database with a complete demo church."""
    from churchconnect.services.seed_service import SeedService

    db.create_all()
    church, admin = SeedService.seed_all()
    click.echo(f'Database seeded: {church.name}')
    click.echo(f'Admin: {admin.email} / {SeedService.DEMO_PASSWORD}')

@app.cli.command()
@click.pass_context
def reset_db(ctx):
    """Reset database completely."""
    if click.confirm('This will delete all data and recreate tables. Continue?'):
        db.drop_all()
        db.create_all()
        click.echo('Database reset complete!')

        if click.confirm('Seed with demo data?'):
            ctx.invoke(seed_all)

if __name__ == '__main__':
    # Development server
    port = int(os.environ.get('PORT', 5000))
    host = os.environ.get('HOST', '127.0.0.1')
    debug = os.environ.get('FLASK_ENV') == 'development'

    app.run(host=host, port=port, debug=debug)
