import logging
from zoneinfo import ZoneInfo
from flask import Blueprint, jsonify, request, Response, current_app, session
from sqlalchemy.exc import IntegrityError

from eaststore import db, services, reports
from eaststore.auth import authenticate, login_admin, logout_admin, current_admin, admin_required, update_credentials
from eaststore.errors import EastStoreError, ValidationError
from eaststore.models import utcnow
from eaststore.money import remaining_cents, is_lunas

public_bp = Blueprint('public', __name__, url_prefix='/api')
admin_bp = Blueprint('admin', __name__, url_prefix='/api')

SERVER_ERROR = "Terjadi kesalahan pada server"


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Format data tidak valid")
    return data


def _domain_error(e):
    return jsonify({"success": False, "message": e.message}), e.status_code


def _server_error(context, e):
    db.session.rollback()
    logging.error(f"Error {context}: {e}")
    return jsonify({"success": False, "message": SERVER_ERROR}), 500

# ===================================================================
# SERIALISASI
# ===================================================================

def _product_summary(p):
    return {"id": p.id, "title": p.title, "slug": p.slug, "price_idr": p.price_idr}


def _product_dict(p):
    return {
        "id": p.id, "slug": p.slug, "title": p.title, "description": p.description,
        "price_idr": p.price_idr, "image_url": p.image_url, "status": p.status,
        "wa_store": p.wa_store, "size_card_template_id": p.size_card_template_id,
        "created_at": p.created_at.isoformat(), "updated_at": p.updated_at.isoformat(),
    }


def _preorder_dict(po, product=True):
    data = {
        "id": po.id, "customer_name": po.customer_name, "customer_phone": po.customer_phone,
        "customer_address": po.customer_address, "product_id": po.product_id, "size": po.size,
        "quantity": po.quantity, "total_price": po.total_price, "status": po.status,
        "payment_id": po.payment.id if po.payment else None,
        "created_at": po.created_at.isoformat(), "updated_at": po.updated_at.isoformat(),
    }
    if product:
        data["product"] = _product_summary(po.product) if po.product else None
    return data


def _payment_dict(pay):
    preorder = pay.preorder
    preorder_data = None
    if preorder:
        preorder_data = _preorder_dict(preorder, product=False)
        preorder_data["product"] = _product_dict(preorder.product) if preorder.product else None
    return {
        "id": pay.id, "preorder_id": pay.preorder_id, "transaction_id": pay.transaction_id,
        "payment_method": pay.payment_method, "amount_cents": pay.amount_cents,
        "paid_amount_cents": pay.paid_amount_cents,
        "remaining_cents": remaining_cents(pay.amount_cents, pay.paid_amount_cents),
        "lunas": is_lunas(pay.amount_cents, pay.paid_amount_cents),
        "status": pay.status, "created_at": pay.created_at.isoformat(),
        "updated_at": pay.updated_at.isoformat(), "preorder": preorder_data,
    }


def _message_dict(m):
    return {
        "id": m.id, "firstName": m.first_name, "lastName": m.last_name, "email": m.email,
        "subject": m.subject, "message": m.message, "read": m.read,
        "createdAt": m.created_at.isoformat(),
    }


def _size_row_dict(row):
    return {
        "id": row.id, "size": row.size,
        "measurements": {
            "panjang": row.panjang, "lebar_dada": row.lebar_dada,
            "lebar_bahu": row.lebar_bahu, "panjang_lengan": row.panjang_lengan,
        },
    }


def _size_card_dict(t):
    return {
        "id": t.id, "name": t.name, "description": t.description, "columns": t.columns or [],
        "rows": [_size_row_dict(r) for r in t.rows],
        "created_at": t.created_at.isoformat(), "updated_at": t.updated_at.isoformat(),
    }


def _artwork_dict(a):
    return {
        "id": a.id, "title": a.title, "artist": a.artist, "image_url": a.image_url,
        "description": a.description, "created_at": a.created_at.isoformat(),
        "updated_at": a.updated_at.isoformat(),
    }

# ===================================================================
# PUBLIC API
# ===================================================================

@public_bp.route('/products', methods=['GET'])
def get_products():
    try:
        products = services.list_products()
        return jsonify({"success": True, "data": [_product_dict(p) for p in products], "count": len(products)})
    except Exception as e:
        return _server_error("fetching products", e)

@public_bp.route('/products/<slug>', methods=['GET'])
def get_product_detail(slug):
    try:
        product = services.get_product_by_slug(slug)
        data = _product_dict(product)
        data["size_card"] = _size_card_dict(product.size_card_template) if product.size_card_template else None
        return jsonify({"success": True, "data": data})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("fetching product", e)

@public_bp.route('/preorder', methods=['POST'])
def submit_preorder():
    try:
        preorder = services.create_preorder(_json_body())
        return jsonify({"success": True, "data": _preorder_dict(preorder), "message": "Preorder berhasil dibuat"}), 201
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("creating preorder", e)

@public_bp.route('/messages', methods=['POST'])
def submit_message():
    try:
        message = services.create_message(_json_body())
        return jsonify({"success": True, "data": _message_dict(message), "message": "Pesan berhasil dikirim"}), 201
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("saving message", e)

@public_bp.route('/size-cards', methods=['GET'])
def get_size_cards():
    try:
        templates = services.list_size_cards()
        return jsonify({"success": True, "data": [_size_card_dict(t) for t in templates], "count": len(templates)})
    except Exception as e:
        return _server_error("fetching size cards", e)

@public_bp.route('/size-cards/<int:template_id>', methods=['GET'])
def get_size_card_detail(template_id):
    try:
        template = services.get_size_card(template_id)
        return jsonify({"success": True, "data": _size_card_dict(template)})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("fetching size card", e)

@public_bp.route('/artworks', methods=['GET'])
def get_artworks():
    try:
        artworks = services.list_artworks()
        return jsonify({"success": True, "data": [_artwork_dict(a) for a in artworks], "count": len(artworks)})
    except Exception as e:
        return _server_error("fetching artworks", e)

@public_bp.route('/artworks/<int:artwork_id>', methods=['GET'])
def get_artwork_detail(artwork_id):
    try:
        artwork = services.get_artwork(artwork_id)
        return jsonify({"success": True, "data": _artwork_dict(artwork)})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("fetching artwork", e)

# --- AUTH ---
@public_bp.route('/auth/login', methods=['POST'])
def handle_login():
    try:
        data = _json_body()
    except EastStoreError as e:
        return _domain_error(e)
    admin = authenticate(data.get('username'), data.get('password'))
    if not admin:
        return jsonify({"success": False, "message": "Username atau password salah"}), 401
    login_admin(admin)
    return jsonify({"success": True, "user": {"id": admin.id, "username": admin.username, "name": admin.name}})

@public_bp.route('/auth/logout', methods=['POST'])
def handle_logout():
    logout_admin()
    return jsonify({"success": True})

@public_bp.route('/auth/check', methods=['GET'])
def check_auth():
    admin = current_admin()
    if admin is None:
        return jsonify({"authenticated": False}), 401
    return jsonify({"authenticated": True, "user": {"id": admin.id, "username": admin.username, "name": admin.name}})

# ===================================================================
# ADMIN API (Preorder & Pembayaran)
# ===================================================================

@admin_bp.route('/preorder', methods=['GET'])
@admin_required
def get_preorders():
    try:
        preorders = services.list_preorders()
        return jsonify({"success": True, "data": [_preorder_dict(po) for po in preorders], "count": len(preorders)})
    except Exception as e:
        return _server_error("fetching preorders", e)

@admin_bp.route('/preorder/<int:preorder_id>', methods=['GET'])
@admin_required
def get_preorder_detail(preorder_id):
    try:
        preorder = services.get_preorder(preorder_id)
        return jsonify({"success": True, "data": _preorder_dict(preorder)})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("fetching preorder", e)

@admin_bp.route('/preorder/<int:preorder_id>', methods=['PATCH'])
@admin_required
def update_preorder_status(preorder_id):
    try:
        preorder = services.confirm_preorder(preorder_id, _json_body().get('status'))
        return jsonify({"success": True, "data": _preorder_dict(preorder), "message": "Status preorder berhasil diperbarui"})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("confirming preorder", e)

@admin_bp.route('/preorder/<int:preorder_id>', methods=['DELETE'])
@admin_required
def remove_preorder(preorder_id):
    try:
        services.delete_preorder(preorder_id)
        return jsonify({"success": True, "message": "Preorder berhasil dihapus"})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("deleting preorder", e)

@admin_bp.route('/payments', methods=['GET'])
@admin_required
def get_payments():
    try:
        payments = services.list_payments()
        filtered = reports.filter_payments(payments, request.args.get('search', ''), request.args.get('status', 'all'))
        return jsonify({
            "success": True,
            "data": [_payment_dict(p) for p in filtered],
            "count": len(filtered),
            "stats": reports.summarize(payments),
        })
    except Exception as e:
        return _server_error("fetching payments", e)

@admin_bp.route('/payments/<int:payment_id>', methods=['PATCH'])
@admin_required
def update_payment(payment_id):
    try:
        payment = services.apply_payment(payment_id, _json_body().get('paid_amount_cents'))
        return jsonify({"success": True, "data": _payment_dict(payment), "message": "Pembayaran berhasil diperbarui"})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("updating payment", e)

@admin_bp.route('/payments/export', methods=['GET'])
@admin_required
def export_payments():
    try:
        payments = services.list_payments()
        filtered = reports.filter_payments(payments, request.args.get('search', ''), request.args.get('status', 'all'))
        filename, content = reports.export_csv(filtered, utcnow(), ZoneInfo(current_app.config["TIMEZONE"]))
        return Response(
            content,
            content_type='text/csv; charset=utf-8',
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
    except Exception as e:
        return _server_error("exporting payments", e)

@admin_bp.route('/admin/stats', methods=['GET'])
@admin_required
def get_dashboard_stats():
    try:
        return jsonify(reports.dashboard_stats())
    except Exception as e:
        return _server_error("fetching dashboard stats", e)

# ===================================================================
# ADMIN API (Produk & Pesan)
# ===================================================================

@admin_bp.route('/products', methods=['POST'])
@admin_required
def add_product():
    try:
        product = services.create_product(_json_body())
        return jsonify({"success": True, "data": _product_dict(product), "message": "Produk berhasil ditambahkan"}), 201
    except EastStoreError as e:
        return _domain_error(e)
    except IntegrityError:
        db.session.rollback()
        return jsonify({"success": False, "message": "Gagal: slug produk sudah digunakan."}), 409
    except Exception as e:
        return _server_error("adding product", e)

@admin_bp.route('/products/<int:product_id>', methods=['PATCH'])
@admin_required
def edit_product(product_id):
    try:
        product = services.update_product(product_id, _json_body())
        return jsonify({"success": True, "data": _product_dict(product), "message": "Produk berhasil diperbarui"})
    except EastStoreError as e:
        return _domain_error(e)
    except IntegrityError:
        db.session.rollback()
        return jsonify({"success": False, "message": "Gagal: slug produk sudah digunakan."}), 409
    except Exception as e:
        return _server_error("updating product", e)

@admin_bp.route('/products/<int:product_id>', methods=['DELETE'])
@admin_required
def remove_product(product_id):
    try:
        services.delete_product(product_id)
        return jsonify({"success": True, "message": "Produk berhasil dihapus"})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("deleting product", e)

@admin_bp.route('/messages', methods=['GET'])
@admin_required
def get_messages():
    try:
        messages = services.list_messages()
        return jsonify({"success": True, "data": [_message_dict(m) for m in messages], "total": len(messages)})
    except Exception as e:
        return _server_error("fetching messages", e)

@admin_bp.route('/messages/<int:message_id>/read', methods=['PATCH'])
@admin_required
def read_message(message_id):
    try:
        message = services.mark_message_read(message_id)
        return jsonify({"success": True, "data": _message_dict(message)})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("updating message", e)

@admin_bp.route('/messages/<int:message_id>', methods=['DELETE'])
@admin_required
def remove_message(message_id):
    try:
        services.delete_message(message_id)
        return jsonify({"success": True, "message": "Pesan berhasil dihapus"})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("deleting message", e)

# ===================================================================
# ADMIN API (Template Ukuran, Artwork & Akun)
# ===================================================================

@admin_bp.route('/size-cards', methods=['POST'])
@admin_required
def add_size_card():
    try:
        template = services.create_size_card(_json_body())
        return jsonify({"success": True, "data": _size_card_dict(template), "message": "Template ukuran berhasil dibuat"}), 201
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("creating size card", e)

@admin_bp.route('/size-cards/<int:template_id>', methods=['PUT'])
@admin_required
def edit_size_card(template_id):
    try:
        template = services.update_size_card(template_id, _json_body())
        return jsonify({"success": True, "data": _size_card_dict(template), "message": "Template ukuran berhasil diperbarui"})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("updating size card", e)

@admin_bp.route('/size-cards/<int:template_id>', methods=['DELETE'])
@admin_required
def remove_size_card(template_id):
    try:
        services.delete_size_card(template_id)
        return jsonify({"success": True, "message": "Template ukuran berhasil dihapus"})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("deleting size card", e)

@admin_bp.route('/artworks', methods=['POST'])
@admin_required
def add_artwork():
    try:
        artwork = services.create_artwork(_json_body())
        return jsonify({"success": True, "data": _artwork_dict(artwork), "message": "Artwork berhasil ditambahkan"}), 201
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("creating artwork", e)

@admin_bp.route('/artworks/<int:artwork_id>', methods=['PUT'])
@admin_required
def edit_artwork(artwork_id):
    try:
        artwork = services.update_artwork(artwork_id, _json_body())
        return jsonify({"success": True, "data": _artwork_dict(artwork), "message": "Artwork berhasil diperbarui"})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("updating artwork", e)

@admin_bp.route('/artworks/<int:artwork_id>', methods=['DELETE'])
@admin_required
def remove_artwork(artwork_id):
    try:
        services.delete_artwork(artwork_id)
        return jsonify({"success": True, "message": "Artwork berhasil dihapus"})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("deleting artwork", e)

@admin_bp.route('/admin/credentials', methods=['PUT'])
@admin_required
def update_admin_credentials():
    try:
        admin = current_admin()
        changes = update_credentials(admin, _json_body())
        # Info sesi ikut diperbarui agar username baru langsung tampil
        session['admin_info'] = {"id": admin.id, "username": admin.username, "name": admin.name}
        return jsonify({"success": True, "changes": changes, "message": "Kredensial berhasil diperbarui"})
    except EastStoreError as e:
        return _domain_error(e)
    except Exception as e:
        return _server_error("updating admin credentials", e)
