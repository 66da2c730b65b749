import re
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from eaststore import db
from eaststore.errors import ValidationError, NotFoundError, ConflictError
from eaststore.models import (
    Product, Preorder, Payment, Message, SizeCardTemplate, SizeCardRow, Artwork,
    PRODUCT_STATUSES, PREORDER_STATUSES, PREORDER_UNCONFIRMED, PREORDER_CONFIRMED,
    PAYMENT_PENDING, PAYMENT_METHOD_PREORDER,
)
from eaststore.money import rupiah_to_cents, format_rupiah

PHONE_PATTERN = re.compile(r'^(0|62)[0-9]{9,12}$')
MIN_QUANTITY = 1
MAX_QUANTITY = 100
MAX_PRICE_IDR = 1_000_000_000
# Batas kolom INTEGER untuk primary key
MAX_DB_ID = 2 ** 31 - 1
SIZE_MEASUREMENTS = ('panjang', 'lebar_dada', 'lebar_bahu', 'panjang_lengan')


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise


def _parse_int(value, field):
    # bool adalah turunan int, tolak secara eksplisit
    if isinstance(value, bool):
        raise ValidationError(f"{field} harus berupa bilangan bulat")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r'-?\d+', value.strip()):
        return int(value.strip())
    raise ValidationError(f"{field} harus berupa bilangan bulat")


def _valid_id(record_id):
    return isinstance(record_id, int) and not isinstance(record_id, bool) and 1 <= record_id <= MAX_DB_ID


def _get_or_not_found(model, record_id, message):
    # Id di luar rentang kolom tidak mungkin ada, jangan dikirim ke database
    record = db.session.get(model, record_id) if _valid_id(record_id) else None
    if record is None:
        raise NotFoundError(message)
    return record


def _required_text(data, field):
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def _optional_text(data, field):
    value = data.get(field)
    return value.strip() if isinstance(value, str) and value.strip() else None

# ===================================================================
# PRODUK
# ===================================================================

def generate_slug(title):
    slug = title.lower().strip()
    slug = re.sub(r'[^\w\s-]', '', slug, flags=re.ASCII)
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'--+', '-', slug)
    return slug.strip('-')


def _unique_slug(title, exclude_id=None):
    base = generate_slug(title) or 'produk'
    query = Product.query.filter(Product.slug.like(f"{base}%"))
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    used = {p.slug for p in query.all()}
    if base not in used:
        return base
    next_id = 2
    while f"{base}-{next_id}" in used:
        next_id += 1
    return f"{base}-{next_id}"


def _validate_product_fields(data, partial=False):
    cleaned = {}
    if not partial or 'title' in data:
        title = _required_text(data, 'title')
        if not title:
            raise ValidationError("Judul produk wajib diisi")
        cleaned['title'] = title
    if not partial or 'price_idr' in data:
        if data.get('price_idr') in (None, ''):
            raise ValidationError("Harga (IDR) wajib diisi dan harus lebih dari 0")
        price = _parse_int(data.get('price_idr'), 'Harga (IDR)')
        if price <= 0 or price > MAX_PRICE_IDR:
            raise ValidationError(f"Harga (IDR) harus antara 1 dan {MAX_PRICE_IDR}")
        cleaned['price_idr'] = price
    if not partial or 'status' in data:
        status = data.get('status', 'coming_soon' if not partial else None)
        if status not in PRODUCT_STATUSES:
            raise ValidationError(f"Status produk harus salah satu dari: {', '.join(PRODUCT_STATUSES)}")
        cleaned['status'] = status
    for field in ('description', 'image_url', 'wa_store'):
        if field in data:
            cleaned[field] = _optional_text(data, field)
    if 'size_card_template_id' in data:
        template_id = data.get('size_card_template_id')
        if template_id in (None, ''):
            cleaned['size_card_template_id'] = None
        else:
            template_id = _parse_int(template_id, 'size_card_template_id')
            cleaned['size_card_template_id'] = _get_or_not_found(
                SizeCardTemplate, template_id, "Template ukuran tidak ditemukan").id
    return cleaned


def list_products():
    return Product.query.order_by(Product.created_at.desc(), Product.id.desc()).all()


def get_product(product_id):
    return _get_or_not_found(Product, product_id, "Produk tidak ditemukan")


def get_product_by_slug(slug):
    product = Product.query.filter_by(slug=slug).first()
    if not product:
        raise NotFoundError("Produk tidak ditemukan")
    return product


def create_product(data):
    cleaned = _validate_product_fields(data)
    product = Product(slug=_unique_slug(cleaned['title']), **cleaned)
    db.session.add(product)
    _commit()
    logging.info(f"Produk #{product.id} '{product.slug}' dibuat")
    return product


def update_product(product_id, data):
    cleaned = _validate_product_fields(data, partial=True)
    product = get_product(product_id)
    if 'title' in cleaned and cleaned['title'] != product.title:
        product.slug = _unique_slug(cleaned['title'], exclude_id=product.id)
    # Mengubah harga tidak menyentuh total_price preorder yang sudah ada
    for field, value in cleaned.items():
        setattr(product, field, value)
    _commit()
    return product


def delete_product(product_id):
    product = get_product(product_id)
    if Preorder.query.filter_by(product_id=product.id).first():
        raise ConflictError("Gagal menghapus: produk ini masih memiliki preorder.")
    db.session.delete(product)
    _commit()
    logging.info(f"Produk #{product_id} dihapus")

# ===================================================================
# TEMPLATE UKURAN (SIZE CARD)
# ===================================================================

def _parse_measurement(value, field):
    if value in (None, ''):
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"Ukuran {field} harus berupa angka")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Ukuran {field} harus berupa angka")
    if number < 0 or number != number:
        raise ValidationError(f"Ukuran {field} tidak boleh negatif")
    return number


def _build_size_rows(rows):
    if not isinstance(rows, list):
        raise ValidationError("Baris ukuran harus berupa daftar")
    built = []
    for idx, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValidationError(f"Baris {idx + 1}: format tidak valid")
        size = _required_text(row, 'size')
        if not size:
            raise ValidationError(f"Baris {idx + 1}: ukuran wajib diisi")
        # Ukuran boleh dikirim langsung di baris atau di dalam 'measurements'
        source = row.get('measurements') if isinstance(row.get('measurements'), dict) else row
        built.append(SizeCardRow(size=size, **{
            field: _parse_measurement(source.get(field), field) for field in SIZE_MEASUREMENTS
        }))
    return built


def _ensure_template_name_free(name, exclude_id=None):
    query = SizeCardTemplate.query.filter_by(name=name)
    if exclude_id is not None:
        query = query.filter(SizeCardTemplate.id != exclude_id)
    if query.first():
        raise ConflictError(f"Template ukuran dengan nama \"{name}\" sudah ada")


def list_size_cards():
    return SizeCardTemplate.query.options(joinedload(SizeCardTemplate.rows))\
        .order_by(SizeCardTemplate.created_at.desc(), SizeCardTemplate.id.desc()).all()


def get_size_card(template_id):
    return _get_or_not_found(SizeCardTemplate, template_id, "Template ukuran tidak ditemukan")


def create_size_card(data):
    name = _required_text(data, 'name')
    if not name:
        raise ValidationError("Nama template wajib diisi")
    columns = data.get('columns')
    if columns is not None and not isinstance(columns, list):
        raise ValidationError("Kolom template harus berupa daftar")
    rows = _build_size_rows(data.get('rows') or [])
    _ensure_template_name_free(name)

    template = SizeCardTemplate(name=name, description=_optional_text(data, 'description'),
                                columns=columns or None, rows=rows)
    db.session.add(template)
    _commit()
    logging.info(f"Template ukuran #{template.id} '{name}' dibuat dengan {len(rows)} baris")
    return template


def update_size_card(template_id, data):
    template = get_size_card(template_id)
    name = _required_text(data, 'name')
    rows = _build_size_rows(data['rows']) if data.get('rows') else None
    if name and name != template.name:
        _ensure_template_name_free(name, exclude_id=template.id)
        template.name = name
    if 'description' in data:
        template.description = _optional_text(data, 'description')
    if rows is not None:
        # Baris lama diganti seluruhnya
        template.rows = rows
    _commit()
    return template


def delete_size_card(template_id):
    template = get_size_card(template_id)
    # Produk yang memakai template ini dilepas, bukan ikut terhapus
    for product in template.products:
        product.size_card_template_id = None
    db.session.delete(template)
    _commit()
    logging.info(f"Template ukuran #{template_id} dihapus")

# ===================================================================
# ARTWORK
# ===================================================================

def _validate_artwork_fields(data):
    title = _required_text(data, 'title')
    artist = _required_text(data, 'artist')
    if not title or not artist:
        raise ValidationError("Judul dan nama seniman wajib diisi")
    return {
        'title': title,
        'artist': artist,
        'image_url': _optional_text(data, 'image_url'),
        'description': _optional_text(data, 'description'),
    }


def list_artworks():
    return Artwork.query.order_by(Artwork.created_at.desc(), Artwork.id.desc()).all()


def get_artwork(artwork_id):
    return _get_or_not_found(Artwork, artwork_id, "Artwork tidak ditemukan")


def create_artwork(data):
    artwork = Artwork(**_validate_artwork_fields(data))
    db.session.add(artwork)
    _commit()
    return artwork


def update_artwork(artwork_id, data):
    cleaned = _validate_artwork_fields(data)
    artwork = get_artwork(artwork_id)
    for field, value in cleaned.items():
        setattr(artwork, field, value)
    _commit()
    return artwork


def delete_artwork(artwork_id):
    artwork = get_artwork(artwork_id)
    db.session.delete(artwork)
    _commit()

# ===================================================================
# PREORDER
# ===================================================================

def validate_preorder_input(data):
    # Telepon dicek setelah karakter non-digit dibuang
    cleaned = {
        'customer_name': _required_text(data, 'customer_name'),
        'customer_phone': _required_text(data, 'customer_phone'),
        'customer_address': _required_text(data, 'customer_address'),
        'size': _required_text(data, 'size'),
    }
    product_id = data.get('product_id')
    quantity = data.get('quantity')
    if not all(cleaned.values()) or product_id in (None, '') or quantity in (None, ''):
        raise ValidationError("Semua field harus diisi")

    digits = re.sub(r'\D', '', cleaned['customer_phone'])
    if not PHONE_PATTERN.match(digits):
        raise ValidationError("Nomor telepon tidak valid")

    cleaned['product_id'] = _parse_int(product_id, 'product_id')
    cleaned['quantity'] = _parse_int(quantity, 'Jumlah')
    if not MIN_QUANTITY <= cleaned['quantity'] <= MAX_QUANTITY:
        raise ValidationError(f"Jumlah harus antara {MIN_QUANTITY} dan {MAX_QUANTITY}")
    return cleaned


def create_preorder(data):
    cleaned = validate_preorder_input(data)
    product = get_product(cleaned['product_id'])

    preorder = Preorder(
        customer_name=cleaned['customer_name'],
        customer_phone=cleaned['customer_phone'],
        customer_address=cleaned['customer_address'],
        product_id=product.id,
        size=cleaned['size'],
        quantity=cleaned['quantity'],
        total_price=product.price_idr * cleaned['quantity'],
        status=PREORDER_UNCONFIRMED,
    )
    db.session.add(preorder)
    _commit()
    logging.info(f"Preorder #{preorder.id} dibuat untuk produk #{product.id} (total Rp {preorder.total_price})")
    return preorder


def list_preorders():
    return Preorder.query.options(joinedload(Preorder.product))\
        .order_by(Preorder.created_at.desc(), Preorder.id.desc()).all()


def get_preorder(preorder_id):
    preorder = None
    if _valid_id(preorder_id):
        preorder = Preorder.query.options(joinedload(Preorder.product)).filter_by(id=preorder_id).first()
    if not preorder:
        raise NotFoundError("Preorder tidak ditemukan")
    return preorder


def confirm_preorder(preorder_id, status=PREORDER_CONFIRMED):
    """Konfirmasi preorder dan buat (atau aktifkan ulang) tagihannya."""
    if not status:
        raise ValidationError("Status harus diisi")
    if status not in PREORDER_STATUSES:
        raise ValidationError("Status tidak valid. Harus 'unconfirmed' atau 'confirmed'")
    if status != PREORDER_CONFIRMED:
        raise ValidationError("Preorder hanya dapat diubah ke status 'confirmed'")

    preorder = None
    if _valid_id(preorder_id):
        preorder = Preorder.query.filter_by(id=preorder_id).with_for_update().first()
    if not preorder:
        raise NotFoundError("Preorder tidak ditemukan")
    if preorder.status != PREORDER_UNCONFIRMED:
        db.session.rollback()
        raise ConflictError("Preorder ini sudah dikonfirmasi.")

    preorder.status = PREORDER_CONFIRMED
    payment = Payment.query.filter_by(preorder_id=preorder.id).first()
    if payment:
        payment.status = PAYMENT_PENDING
    else:
        payment = Payment(
            preorder=preorder,
            payment_method=PAYMENT_METHOD_PREORDER,
            amount_cents=rupiah_to_cents(preorder.total_price),
            paid_amount_cents=0,
            status=PAYMENT_PENDING,
        )
        db.session.add(payment)
    _commit()
    logging.info(f"Preorder #{preorder.id} dikonfirmasi, pembayaran #{payment.id} menunggu pelunasan")
    return preorder


def delete_preorder(preorder_id):
    preorder = _get_or_not_found(Preorder, preorder_id, "Preorder tidak ditemukan")
    # Pembayaran ikut terhapus lewat cascade delete-orphan
    db.session.delete(preorder)
    _commit()
    logging.info(f"Preorder #{preorder_id} beserta pembayarannya dihapus")

# ===================================================================
# PEMBAYARAN
# ===================================================================

def list_payments():
    return Payment.query.options(joinedload(Payment.preorder).joinedload(Preorder.product))\
        .order_by(Payment.created_at.desc(), Payment.id.desc()).all()


def apply_payment(payment_id, paid_amount_cents):
    """Ganti nominal terbayar (nilai absolut, bukan penambahan)."""
    if paid_amount_cents is None:
        raise ValidationError("paid_amount_cents harus diisi")
    new_paid = _parse_int(paid_amount_cents, 'paid_amount_cents')

    payment = None
    if _valid_id(payment_id):
        payment = Payment.query.filter_by(id=payment_id).with_for_update().first()
    if not payment:
        raise NotFoundError("Pembayaran tidak ditemukan")
    if new_paid < 0 or new_paid > payment.amount_cents:
        total = format_rupiah(payment.amount_cents)
        db.session.rollback()
        raise ValidationError(f"Nominal pembayaran harus antara 0 hingga {total}")

    previous = payment.paid_amount_cents
    payment.paid_amount_cents = new_paid
    _commit()
    logging.info(f"Pembayaran #{payment.id}: terbayar {previous} -> {new_paid} sen")
    return Payment.query.options(joinedload(Payment.preorder).joinedload(Preorder.product))\
        .filter_by(id=payment.id).first()

# ===================================================================
# PESAN KONTAK
# ===================================================================

def create_message(data):
    fields = ('first_name', 'last_name', 'email', 'subject', 'message')
    cleaned = {field: _required_text(data, field) for field in fields}
    if not all(cleaned.values()):
        raise ValidationError("Semua field harus diisi")
    if '@' not in cleaned['email']:
        raise ValidationError("Alamat email tidak valid")
    message = Message(**cleaned)
    db.session.add(message)
    _commit()
    return message


def list_messages():
    return Message.query.order_by(Message.created_at.desc(), Message.id.desc()).all()


def mark_message_read(message_id):
    message = _get_or_not_found(Message, message_id, "Pesan tidak ditemukan")
    message.read = True
    _commit()
    return message


def delete_message(message_id):
    message = _get_or_not_found(Message, message_id, "Pesan tidak ditemukan")
    db.session.delete(message)
    _commit()
