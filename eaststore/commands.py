import click
from flask import current_app
from flask.cli import with_appcontext

from eaststore import db
from eaststore.auth import create_admin_user
from eaststore.models import AdminUser, Product, Preorder, Payment, PREORDER_CONFIRMED, PAYMENT_PENDING
from eaststore.money import rupiah_to_cents
from eaststore.services import generate_slug

@click.command(name='init-db')
@with_appcontext
def init_db_command():
    db.create_all()
    click.echo("Database telah diinisialisasi.")

@click.command(name='create-admin')
@click.argument('username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--name', default='Admin')
@with_appcontext
def create_admin_command(username, password, name):
    if AdminUser.query.filter_by(username=username.strip().lower()).first():
        raise click.ClickException(f"Admin '{username}' sudah ada.")
    create_admin_user(username, password, name=name)
    click.echo(f"Admin '{username}' berhasil dibuat.")

@click.command(name='seed-db')
@with_appcontext
def seed_db_command():
    """Menghapus database dan membuat data demo."""
    db.drop_all()
    db.create_all()
    click.echo("Database dibersihkan...")

    # ===================================================================
    ## 1. Admin
    # ===================================================================
    create_admin_user(current_app.config['ADMIN_USERNAME'], current_app.config['ADMIN_PASSWORD'], name="Admin EastStore")
    click.echo("=> Admin berhasil dibuat.")

    # ===================================================================
    ## 2. Produk
    # ===================================================================
    catalogue = [
        ("Kaos East Classic", 125000, 'pre_order'),
        ("Hoodie East Night", 275000, 'pre_order'),
        ("Kemeja Flanel Timur", 210000, 'coming_soon'),
    ]
    products = [Product(title=title, slug=generate_slug(title), price_idr=price, status=status)
                for title, price, status in catalogue]
    db.session.add_all(products)
    db.session.commit()
    click.echo(f"=> {len(products)} produk berhasil dibuat.")

    # ===================================================================
    ## 3. Preorder & pembayaran contoh
    # ===================================================================
    samples = [
        ("Budi Santoso", "081234567890", "Jl. Merdeka No. 1, Bandung", products[0], "L", 2, True, 10000),
        ("Siti Aminah", "6281298765432", "Jl. Asia Afrika No. 8, Bandung", products[1], "M", 1, True, 275000),
        ("Andi Wijaya", "085711112222", "Jl. Dago No. 20, Bandung", products[0], "XL", 3, False, 0),
    ]
    for name, phone, address, product, size, qty, confirmed, paid_rupiah in samples:
        preorder = Preorder(customer_name=name, customer_phone=phone, customer_address=address,
                            product_id=product.id, size=size, quantity=qty,
                            total_price=product.price_idr * qty)
        if confirmed:
            preorder.status = PREORDER_CONFIRMED
            preorder.payment = Payment(amount_cents=rupiah_to_cents(preorder.total_price),
                                       paid_amount_cents=rupiah_to_cents(paid_rupiah),
                                       status=PAYMENT_PENDING)
        db.session.add(preorder)
    db.session.commit()
    click.echo("=> Preorder contoh berhasil dibuat.")
    click.echo("\nDatabase siap untuk demo! Silakan jalankan aplikasi.")
