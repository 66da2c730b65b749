import datetime
from decimal import Decimal, ROUND_HALF_UP

# Harga produk dan total preorder dalam rupiah utuh, tagihan dalam sen
CENTS_PER_RUPIAH = 100


def rupiah_to_cents(rupiah):
    return int(rupiah) * CENTS_PER_RUPIAH


def cents_to_rupiah(cents):
    # Dibulatkan setengah ke atas, hanya untuk tampilan
    value = Decimal(int(cents)) / CENTS_PER_RUPIAH
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def remaining_cents(amount_cents, paid_amount_cents):
    # Sisa tagihan tidak pernah negatif
    return max(0, (amount_cents or 0) - (paid_amount_cents or 0))


def is_lunas(amount_cents, paid_amount_cents):
    return remaining_cents(amount_cents, paid_amount_cents) == 0


def format_number(value):
    return f"{int(value):,}".replace(',', '.')


def format_rupiah(cents):
    return f"Rp {format_number(cents_to_rupiah(cents))}"


def format_date(value, tz=None):
    # Timestamp tersimpan sebagai UTC naif; geser ke zona lokal bila diberikan
    if tz is not None and isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        value = value.astimezone(tz)
    return f"{value.day}/{value.month}/{value.year}"
