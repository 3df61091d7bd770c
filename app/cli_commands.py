"""
Flask CLI commands for promotion management.

Commands:
- flask seed-promotions: Insert the default promotion rules
- flask list-promotions: Show stored rules in pricing order
"""

import click
from app.database import get_session
from app.services.promotion_service import list_promotions, seed_default_promotions


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('seed-promotions')
    def seed_promotions():
        """Insert the default promotions if there are none yet."""
        try:
            created = seed_default_promotions(get_session())
        except Exception as e:
            click.echo(click.style(f'❌ Error al crear promociones: {str(e)}', fg='red'))
            raise SystemExit(1)

        if created:
            click.echo(click.style(f'✅ {created} promociones creadas.', fg='green', bold=True))
        else:
            click.echo('Ya existen promociones, no se creó ninguna.')

    @app.cli.command('list-promotions')
    @click.option('--active-only', is_flag=True, help='Only show active rules')
    def list_promotions_command(active_only):
        """List promotion rules in the order the pricing engine evaluates them."""
        rules = list_promotions(get_session(), active_only=active_only)
        if not rules:
            click.echo('No hay reglas de promoción.')
            return
        for rule in rules:
            state = click.style('ON ', fg='green') if rule.is_active else click.style('OFF', fg='red')
            target = rule.target or '-'
            click.echo(f'{state} #{rule.id} {rule.name}: {rule.kind} {rule.value} {rule.scope}={target}')
