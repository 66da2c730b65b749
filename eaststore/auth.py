import re
import logging
from functools import wraps
from flask import session, jsonify
from werkzeug.security import generate_password_hash, check_password_hash

from eaststore import db
from eaststore.errors import ValidationError, ConflictError
from eaststore.models import AdminUser

USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_]+$')
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 8


def authenticate(username, password):
    username = (username or '').strip().lower() if isinstance(username, str) else ''
    admin = AdminUser.query.filter(db.func.lower(AdminUser.username) == username).first()
    if admin and isinstance(password, str) and password and check_password_hash(admin.password, password):
        return admin
    logging.warning(f"Login admin gagal untuk username '{username}'")
    return None


def login_admin(admin):
    session.clear()
    session['admin_id'] = admin.id
    session['admin_info'] = {"id": admin.id, "username": admin.username, "name": admin.name}


def logout_admin():
    session.clear()


def current_admin():
    admin_id = session.get('admin_id')
    if admin_id is None:
        return None
    return db.session.get(AdminUser, admin_id)


def admin_required(view):
    # Semua endpoint admin hanya bisa diakses dengan sesi login yang valid
    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_admin() is None:
            return jsonify({"success": False, "message": "Silakan login sebagai admin."}), 401
        return view(*args, **kwargs)
    return wrapped


def create_admin_user(username, password, name='Admin'):
    admin = AdminUser(username=username.strip().lower(), name=name, password=generate_password_hash(password))
    db.session.add(admin)
    db.session.commit()
    return admin


def _text(data, field):
    value = data.get(field)
    return value.strip() if isinstance(value, str) else ''


def update_credentials(admin, data):
    """Ganti username dan/atau password admin yang sedang login.

    Password saat ini wajib benar. Mengembalikan daftar bagian yang diubah.
    """
    current_password = data.get('current_password')
    if not isinstance(current_password, str) or not check_password_hash(admin.password, current_password):
        raise ValidationError("Password saat ini tidak sesuai. Silakan coba lagi.")

    new_username = _text(data, 'new_username')
    new_password = data.get('new_password') if isinstance(data.get('new_password'), str) else ''
    confirm_password = data.get('confirm_password')
    changes = []

    if new_username:
        if len(new_username) < MIN_USERNAME_LENGTH:
            raise ValidationError(f"Username harus minimal {MIN_USERNAME_LENGTH} karakter")
        if not USERNAME_PATTERN.match(new_username):
            raise ValidationError("Username hanya boleh mengandung huruf, angka, dan underscore")
        new_username = new_username.lower()
    if new_username and new_username != admin.username:
        taken = AdminUser.query.filter(AdminUser.username == new_username, AdminUser.id != admin.id).first()
        if taken:
            raise ConflictError("Username sudah digunakan oleh admin lain.")
        changes.append('username')

    if new_password.strip():
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password harus minimal {MIN_PASSWORD_LENGTH} karakter")
        if new_password != confirm_password:
            raise ValidationError("Password baru dan konfirmasi password tidak sesuai")
        if not (re.search(r'[A-Z]', new_password) and re.search(r'[a-z]', new_password) and re.search(r'\d', new_password)):
            raise ValidationError("Password harus mengandung huruf besar, huruf kecil, dan angka")
        changes.append('password')

    if not changes:
        raise ValidationError("Tidak ada yang diubah. Silakan masukkan data baru.")

    # Semua validasi lolos sebelum ada yang ditulis
    if 'username' in changes:
        admin.username = new_username
    if 'password' in changes:
        admin.password = generate_password_hash(new_password)
    db.session.commit()
    logging.info(f"Kredensial admin #{admin.id} diperbarui: {', '.join(changes)}")
    return changes
