import datetime
from eaststore import db

# --- STATUS ---
PRODUCT_STATUSES = ('coming_soon', 'pre_order', 'close')

PREORDER_UNCONFIRMED = 'unconfirmed'
PREORDER_CONFIRMED = 'confirmed'
PREORDER_STATUSES = (PREORDER_UNCONFIRMED, PREORDER_CONFIRMED)

PAYMENT_PENDING = 'pending'
PAYMENT_METHOD_PREORDER = 'preorder'


def utcnow():
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)

# ===================================================================
# DEFINISI MODEL DATABASE
# ===================================================================

class AdminUser(db.Model):
    __tablename__ = 'admin_users'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=False, default='Admin')
    password = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

class Product(db.Model):
    __tablename__ = 'products'
    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(200), unique=True, nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    # Harga dalam rupiah utuh
    price_idr = db.Column(db.BigInteger, nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    status = db.Column(db.String(20), nullable=False, default='coming_soon')
    wa_store = db.Column(db.String(30), nullable=True)
    size_card_template_id = db.Column(db.Integer, db.ForeignKey('size_card_templates.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    preorders = db.relationship('Preorder', back_populates='product', lazy=True)
    size_card_template = db.relationship('SizeCardTemplate', back_populates='products')

class Preorder(db.Model):
    __tablename__ = 'preorders'
    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(150), nullable=False)
    customer_phone = db.Column(db.String(30), nullable=False)
    customer_address = db.Column(db.Text, nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    size = db.Column(db.String(20), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    # Snapshot harga satuan x jumlah saat dibuat, tidak dihitung ulang
    total_price = db.Column(db.BigInteger, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=PREORDER_UNCONFIRMED, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    product = db.relationship('Product', back_populates='preorders')
    payment = db.relationship('Payment', back_populates='preorder', uselist=False, cascade="all, delete-orphan")

class Payment(db.Model):
    __tablename__ = 'payments'
    id = db.Column(db.Integer, primary_key=True)
    preorder_id = db.Column(db.Integer, db.ForeignKey('preorders.id', ondelete='CASCADE'), unique=True, nullable=False)
    payment_method = db.Column(db.String(30), nullable=False, default=PAYMENT_METHOD_PREORDER)
    amount_cents = db.Column(db.BigInteger, nullable=False)
    paid_amount_cents = db.Column(db.BigInteger, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default=PAYMENT_PENDING, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    preorder = db.relationship('Preorder', back_populates='payment')
    __table_args__ = (
        db.CheckConstraint('amount_cents >= 0', name='ck_payment_amount_non_negative'),
        db.CheckConstraint('paid_amount_cents >= 0 AND paid_amount_cents <= amount_cents', name='ck_payment_paid_in_range'),
    )

    @property
    def transaction_id(self):
        # Hanya untuk tampilan; relasi memakai preorder_id
        return f"PRE-{self.preorder_id}"

class Message(db.Model):
    __tablename__ = 'messages'
    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(200), nullable=False)
    subject = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

class SizeCardTemplate(db.Model):
    __tablename__ = 'size_card_templates'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    # Daftar judul kolom tabel ukuran, disimpan apa adanya
    columns = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    rows = db.relationship('SizeCardRow', back_populates='template', cascade="all, delete-orphan",
                           order_by='SizeCardRow.id')
    products = db.relationship('Product', back_populates='size_card_template')

class SizeCardRow(db.Model):
    __tablename__ = 'size_card_rows'
    id = db.Column(db.Integer, primary_key=True)
    template_id = db.Column(db.Integer, db.ForeignKey('size_card_templates.id', ondelete='CASCADE'), nullable=False)
    size = db.Column(db.String(20), nullable=False)
    # Ukuran dalam cm
    panjang = db.Column(db.Float, nullable=False, default=0)
    lebar_dada = db.Column(db.Float, nullable=False, default=0)
    lebar_bahu = db.Column(db.Float, nullable=False, default=0)
    panjang_lengan = db.Column(db.Float, nullable=False, default=0)
    template = db.relationship('SizeCardTemplate', back_populates='rows')

class Artwork(db.Model):
    __tablename__ = 'artworks'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    artist = db.Column(db.String(150), nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
