import click
from flask.cli import with_appcontext

from planmarket.domain.passwords import check_password, generate_password
from planmarket.extensions import db


DEFAULT_SERVICES = [
    {'name': 'Construction plans (PDF)', 'price': 0, 'is_default': True,
     'description': 'Full set of construction drawings, ready to print.'},
    {'name': 'Editable CAD files', 'price': 500,
     'description': 'DWG files for your architect or builder.'},
    {'name': 'Bill of materials', 'price': 250,
     'description': 'Quantities for every material used in the plan.'},
    {'name': 'Local code adaptation', 'price': 900,
     'description': 'Plan review and adjustments for your municipality.'},
]

SAMPLE_PLANS = [
    {'title': 'Compact Modern Bungalow', 'style': 'modern', 'bedrooms': 2, 'bathrooms': 1,
     'floor_area': 85, 'floors': 1, 'garages': 0, 'has_pool': False,
     'estimated_budget': 120000, 'price': 1500},
    {'title': 'Family Farmhouse', 'style': 'farmhouse', 'bedrooms': 4, 'bathrooms': 2.5,
     'floor_area': 210, 'floors': 2, 'garages': 2, 'has_pool': False,
     'estimated_budget': 340000, 'price': 2400},
    {'title': 'Mediterranean Villa', 'style': 'mediterranean', 'bedrooms': 5, 'bathrooms': 4,
     'floor_area': 320, 'floors': 2, 'garages': 2, 'has_pool': True,
     'estimated_budget': 650000, 'price': 3900},
]


def seed_services():
    """Insert missing default services; returns how many were added."""
    from planmarket.models import ServiceRecord

    created_count = 0
    for data in DEFAULT_SERVICES:
        if ServiceRecord.query.filter_by(name=data['name']).first() is None:
            db.session.add(ServiceRecord(**data))
            created_count += 1
    db.session.commit()
    return created_count


def seed_sample_plans():
    from planmarket.models import PlanRecord

    created_count = 0
    for data in SAMPLE_PLANS:
        if PlanRecord.query.filter_by(title=data['title']).first() is None:
            db.session.add(PlanRecord(**data))
            created_count += 1
    db.session.commit()
    return created_count


def _require_local():
    from planmarket.services import get_services

    if get_services().backend.name != 'local':
        raise click.ClickException('This command only applies to the local backend.')


@click.command('init-db')
@with_appcontext
def init_db_command() -> None:
    """Create the local backend tables."""
    _require_local()
    import planmarket.models  # noqa: F401

    db.create_all()
    click.echo('Local tables are ready.')


@click.command('seed-services')
@with_appcontext
def seed_services_command() -> None:
    """Seed the add-on services offered with every plan."""
    _require_local()
    from planmarket.models import ServiceRecord

    created_count = seed_services()
    click.echo(f"Seeded {created_count} services. Total services: {ServiceRecord.query.count()}")


@click.command('seed-sample-plans')
@with_appcontext
def seed_sample_plans_command() -> None:
    """Seed a few house plans for local development."""
    _require_local()
    from planmarket.models import PlanRecord

    created_count = seed_sample_plans()
    click.echo(f"Seeded {created_count} plans. Total plans: {PlanRecord.query.count()}")


@click.command('generate-password')
@click.option('--length', default=12, show_default=True, type=click.IntRange(min=8), help='Password length')
def generate_password_command(length: int) -> None:
    """Print a random password that meets the password policy."""
    password = generate_password(length)
    click.echo(password)
    click.echo('Missing: ' + (', '.join(check_password(password).missing()) or 'nothing'), err=True)
