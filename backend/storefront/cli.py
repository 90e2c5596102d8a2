# Overview: Flask CLI command groups for bootstrap, catalog/stock upkeep, and order operations.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--demo]
#   Idempotent: create tables, optionally seed a small demo catalog.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog and stock:
# - python -m flask catalog add SKU-1 "Linen Shirt" 4500 --stock 10 --category apparel
#   Create or update a product (price in minor units).
# - python -m flask catalog list
#   List products with live stock.
# - python -m flask inventory set SKU-1 25
#   Overwrite the stock count.
# - python -m flask inventory adjust SKU-1 -- -3
#   Apply a delta (clamped at zero).
#
# Orders:
# - python -m flask orders list [--email someone@example.com]
# - python -m flask orders confirm ORDER_ID [--actor ops@example.com]
# - python -m flask orders ship ORDER_ID shipped [--actor ops@example.com]
# - python -m flask orders normalize
#   Rewrite the stored order collection in normalized form.
# - python -m flask orders metrics [--group-by month]
#
# Settings:
# - python -m flask settings auto-confirm [on|off]
#   Show (no argument) or change the auto-confirm policy.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Product
from .persistence import StorageError
from .services import catalog_service, checkout_service, order_service, reporting_service, settings_service
from .services.inventory_service import default_inventory, set_stock_as
from .services.order_repository import default_repository


DEMO_CATALOG = [
    ("TEE-001", "Organic Cotton Tee", 2500, 40, "apparel"),
    ("MUG-001", "Stoneware Mug", 1800, 25, "home"),
    ("BAG-001", "Canvas Tote", 3200, 12, "accessories"),
    ("CAP-001", "Wool Cap", 2200, 3, "accessories"),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--demo', is_flag=True, help='Seed a small demo catalog when the catalog is empty')
@with_appcontext
def init_system(demo):
    """Create tables and, with --demo, seed a starter catalog."""
    click.echo("START Initializing storefront...")
    db.create_all()
    click.echo("PASS Tables ready")

    if demo:
        if db.session.query(Product).count():
            click.echo("WARN Catalog not empty, skipping demo seed")
        else:
            inventory = default_inventory()
            for product_id, name, price, stock, category in DEMO_CATALOG:
                catalog_service.upsert_product(
                    product_id=product_id,
                    name=name,
                    price=price,
                    stock=stock,
                    category=category,
                    inventory=inventory,
                )
            click.echo(f"PASS Seeded {len(DEMO_CATALOG)} demo products")

    policy = "on" if settings_service.get_auto_confirm() else "off"
    click.echo(f"DONE Storefront initialized (auto-confirm {policy})")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA, including every stored order!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


# =============================================================================
# CATALOG AND STOCK COMMANDS
# =============================================================================

@click.group('catalog')
def catalog_group():
    """Catalog management commands."""


@catalog_group.command('add')
@click.argument('product_id')
@click.argument('name')
@click.argument('price', type=int)
@click.option('--stock', type=int, help='Initial stock count')
@click.option('--category', default='', help='Category label')
@click.option('--image', default='', help='Image URL')
@with_appcontext
def add_product_cli(product_id, name, price, stock, category, image):
    """Create or update a product."""
    try:
        product = catalog_service.upsert_product(
            product_id=product_id,
            name=name,
            price=price,
            stock=stock,
            category=category,
            image=image,
            inventory=default_inventory(),
        )
    except catalog_service.CatalogError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Saved product {product.id}: {product.name} ({product.price})")


@catalog_group.command('list')
@with_appcontext
def list_products_cli():
    """List products with live stock."""
    inventory = default_inventory()
    products = catalog_service.list_products()
    if not products:
        click.echo("No products found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<16} {'Name':<30} {'Category':<14} {'Price':>8} {'Stock':>7}")
    click.echo("=" * 80)
    for product in products:
        click.echo(
            f"{product.id:<16} {product.name[:30]:<30} {product.category[:14]:<14} "
            f"{product.price:>8} {inventory.get_stock(product.id):>7}"
        )
    click.echo("=" * 80 + "\n")


@click.group('inventory')
def inventory_group():
    """Stock level commands."""


@inventory_group.command('set')
@click.argument('product_id')
@click.argument('quantity', type=int)
@with_appcontext
def set_stock_cli(product_id, quantity):
    """Overwrite a product's stock count."""
    value = set_stock_as(default_inventory(), product_id, quantity, actor="cli")
    click.echo(f"PASS Stock for {product_id} is now {value}")


@inventory_group.command('adjust')
@click.argument('product_id')
@click.argument('delta', type=int)
@with_appcontext
def adjust_stock_cli(product_id, delta):
    """Apply a signed delta to a product's stock count."""
    value = default_inventory().adjust_stock(product_id, delta)
    click.echo(f"PASS Stock for {product_id} is now {value}")


# =============================================================================
# ORDER COMMANDS
# =============================================================================

@click.group('orders')
def orders_group():
    """Order inspection and lifecycle commands."""


@orders_group.command('list')
@click.option('--email', help='Only orders for this customer email')
@with_appcontext
def list_orders_cli(email):
    """List orders, newest first."""
    repo = default_repository()
    orders = order_service.get_orders_for_customer(repo, email) if email else order_service.list_orders(repo)
    if not orders:
        click.echo("No orders found.")
        return

    click.echo("\n" + "=" * 110)
    click.echo(f"{'ID':<38} {'Customer':<28} {'Status':<10} {'Shipping':<22} {'Subtotal':>9}")
    click.echo("=" * 110)
    for order in orders:
        click.echo(
            f"{order.id:<38} {order.customer_email[:28]:<28} {order.status:<10} "
            f"{order.shipping_status:<22} {order.subtotal:>9}"
        )
    click.echo("=" * 110 + "\n")


@orders_group.command('confirm')
@click.argument('order_id')
@click.option('--actor', default='admin', show_default=True, help='Actor label for the timeline')
@with_appcontext
def confirm_order_cli(order_id, actor):
    """Confirm an order."""
    try:
        order = order_service.confirm_order(default_repository(), order_id, actor)
    except StorageError as e:
        raise click.ClickException(str(e))
    if order is None:
        click.echo(f"FAIL Order {order_id} not found or cancelled")
        return
    click.echo(f"PASS Order {order.id} confirmed ({order.shipping_status_label})")


@orders_group.command('ship')
@click.argument('order_id')
@click.argument('shipping_status')
@click.option('--actor', default='admin', show_default=True, help='Actor label for the timeline')
@with_appcontext
def ship_order_cli(order_id, shipping_status, actor):
    """Set an order's shipping status."""
    try:
        order = checkout_service.update_shipping_and_restore(
            default_repository(), default_inventory(), order_id, shipping_status, actor,
        )
    except StorageError as e:
        raise click.ClickException(str(e))
    if order is None:
        click.echo(f"FAIL Order {order_id} not found, cancelled, or already at that status")
        return
    click.echo(f"PASS Order {order.id} shipping is now {order.shipping_status_label}")


@orders_group.command('normalize')
@with_appcontext
def normalize_orders_cli():
    """Rewrite the stored order collection in normalized form."""
    count = order_service.renormalize_all(default_repository())
    click.echo(f"PASS Normalized {count} orders")


@orders_group.command('metrics')
@click.option('--group-by', type=click.Choice(sorted(reporting_service.PERIOD_FORMATS)), default='day', show_default=True)
@with_appcontext
def metrics_cli(group_by):
    """Print revenue and inventory figures."""
    orders = order_service.list_orders(default_repository())
    revenue = reporting_service.revenue_metrics(orders)
    inventory = reporting_service.inventory_summary(
        catalog_service.list_products(),
        default_inventory(),
        low_stock_threshold=current_app.config.get("LOW_STOCK_THRESHOLD", 5),
    )

    for key, value in revenue.items():
        click.echo(f"{key:<22} {value}")
    for key, value in inventory.items():
        click.echo(f"{key:<22} {value}")

    rows = reporting_service.revenue_by_period(orders, group_by=group_by)["rows"]
    if rows:
        click.echo(f"\n{'Period':<12} {'Orders':>7} {'Items':>7} {'Revenue':>10}")
        for row in rows:
            click.echo(f"{row['period']:<12} {row['orders_count']:>7} {row['items_sold']:>7} {row['revenue']:>10}")


# =============================================================================
# SETTINGS COMMANDS
# =============================================================================

@click.group('settings')
def settings_group():
    """Operator policy commands."""


@settings_group.command('auto-confirm')
@click.argument('state', required=False, type=click.Choice(['on', 'off']))
@with_appcontext
def auto_confirm_cli(state):
    """Show or change the auto-confirm policy."""
    if state is not None:
        settings_service.set_auto_confirm(state, actor="cli")
    enabled = settings_service.get_auto_confirm()
    click.echo(f"Auto-confirm is {'on' if enabled else 'off'}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(inventory_group)
    app.cli.add_command(orders_group)
    app.cli.add_command(settings_group)
