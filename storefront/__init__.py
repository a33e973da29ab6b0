import click
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from config import config

db = SQLAlchemy()


def create_app(config_name='default'):
    """Application factory — creates and configures the Flask app."""
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # ── Logging ───────────────────────────────────────────────────
    from storefront.utils.logging import setup_logging
    setup_logging(app)

    # ── Extensions ────────────────────────────────────────────────
    db.init_app(app)
    from storefront.storage import models  # noqa: F401  registers StorageEntry

    # ── Blueprints ────────────────────────────────────────────────
    from storefront.cart import cart as cart_blueprint
    app.register_blueprint(cart_blueprint, url_prefix='/cart')

    from storefront.receipts import receipts as receipts_blueprint
    app.register_blueprint(receipts_blueprint, url_prefix='/receipts')

    # ── Error Handlers ────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'ok': False, 'error': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({'ok': False, 'error': 'Server error'}), 500

    # ── CLI Commands ──────────────────────────────────────────────
    register_commands(app)

    return app


def register_commands(app):
    """Register custom Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db():
        """Create all database tables."""
        db.create_all()
        click.echo('✅  Database tables created.')

    @app.cli.command('show-cart')
    @click.option('--shopper', required=True, help='Shopper namespace id')
    def show_cart(shopper):
        """Print a shopper's cart lines and pricing summary."""
        from storefront.services import get_cart_store
        from storefront.cart.pricing import normalize_price, price_cart
        from storefront.utils.money import format_money

        items = get_cart_store(shopper).items()
        if not items:
            click.echo('Cart is empty.')
            return
        click.echo(f'{"Name":<30} {"Size":<6} {"Qty":>4} {"Unit":>14}')
        click.echo('─' * 58)
        for item in items:
            click.echo(f'{item.name[:30]:<30} {item.size:<6} {item.quantity:>4} '
                       f'{format_money(normalize_price(item.unit_price)):>14}')
        result = price_cart(items)
        click.echo('─' * 58)
        click.echo(f'Subtotal: {format_money(result.subtotal)}')
        click.echo(f'Discount: {format_money(result.discount)}')
        click.echo(f'Shipping: {format_money(result.shipping)}')
        click.echo(f'Total:    {format_money(result.total)}')

    @app.cli.command('show-receipts')
    @click.option('--shopper', required=True, help='Shopper namespace id')
    def show_receipts(shopper):
        """List a shopper's receipt history, newest first."""
        from storefront.services import get_receipt_history
        from storefront.utils.money import format_money

        records = get_receipt_history(shopper).all()
        if not records:
            click.echo('No receipts found.')
            return
        click.echo(f'{"Receipt":<26} {"Created":<26} {"Total"}')
        click.echo('─' * 66)
        for rec in records:
            click.echo(f'{rec.get("number", "?"):<26} {rec.get("createdAt", "?"):<26} '
                       f'{format_money(rec.get("total", 0))}')

    @app.cli.command('purge-receipts')
    @click.option('--days', default=None, type=int, help='Maximum age in days')
    @click.option('--shopper', default=None, help='Only purge this shopper')
    def purge_receipts(days, shopper):
        """Evict receipts older than the configured age."""
        from storefront.services import get_receipt_history
        from storefront.storage.models import StorageEntry

        if days is None:
            days = app.config['RECEIPT_MAX_AGE_DAYS']
        if shopper:
            shoppers = [shopper]
        else:
            rows = db.session.query(StorageEntry.namespace).distinct().all()
            shoppers = [row[0] for row in rows]

        removed = 0
        for namespace in shoppers:
            removed += get_receipt_history(namespace).purge_older_than(days)
        click.echo(f'✅  Removed {removed} receipt(s) older than {days} days.')
