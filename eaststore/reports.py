from sqlalchemy.sql import func

from eaststore import db
from eaststore.models import AdminUser, Product, Preorder, Payment
from eaststore.money import remaining_cents, format_number, format_rupiah, format_date, cents_to_rupiah

CSV_HEADERS = [
    "Payment ID",
    "Preorder ID",
    "Nama Pemesan",
    "Nominal (IDR)",
    "Terbayar (IDR)",
    "Sisa (IDR)",
    "Status",
    "Metode Pembayaran",
    "Tanggal Pembayaran",
]


def filter_payments(payments, search='', status='all'):
    search = (search or '').strip()
    needle = search.lower()
    result = []
    for payment in payments:
        preorder = payment.preorder
        match_search = (
            not search
            or search in str(payment.id)
            or (preorder is not None and needle in preorder.customer_name.lower())
            or (preorder is not None and search in preorder.customer_phone)
        )
        match_status = not status or status == 'all' or payment.status == status
        if match_search and match_status:
            result.append(payment)
    return result


def summarize(payments):
    return {
        "totalPemesan": len(payments),
        "totalBelumLunas": sum(1 for p in payments if remaining_cents(p.amount_cents, p.paid_amount_cents) > 0),
        "totalTerbayarCents": sum(p.paid_amount_cents or 0 for p in payments),
        "totalSisaCents": sum(remaining_cents(p.amount_cents, p.paid_amount_cents) for p in payments),
    }


def _quote(text):
    return '"' + text.replace('"', '""') + '"'


def export_filename(now):
    return f"payments_{now.strftime('%Y-%m-%d')}.csv"


def export_csv(payments, now, tz=None):
    # Output hanya bergantung pada payments, now dan tz
    stats = summarize(payments)
    total_pendapatan = sum(p.amount_cents or 0 for p in payments)

    lines = [
        "Summary,",
        f"Total Pesanan,{stats['totalPemesan']}",
        f"Total Pendapatan (IDR),{format_rupiah(total_pendapatan)}",
        f"Total Terbayar (IDR),{format_rupiah(stats['totalTerbayarCents'])}",
        f"Total Sisa (IDR),{format_rupiah(stats['totalSisaCents'])}",
        f"Total Pemesanan Belum Lunas,{stats['totalBelumLunas']}",
        "",
        ",".join(CSV_HEADERS),
    ]

    for payment in payments:
        preorder = payment.preorder
        amount = payment.amount_cents or 0
        paid = payment.paid_amount_cents or 0
        row = [
            str(payment.id),
            str(preorder.id) if preorder else "-",
            _quote(preorder.customer_name if preorder else "-"),
            format_number(cents_to_rupiah(amount)),
            format_number(cents_to_rupiah(paid)),
            format_number(cents_to_rupiah(remaining_cents(amount, paid))),
            payment.status,
            payment.payment_method or "-",
            format_date(payment.created_at, tz),
        ]
        lines.append(",".join(row))

    return export_filename(now), "\n".join(lines)


def dashboard_stats():
    revenue_cents = db.session.query(func.sum(Payment.paid_amount_cents)).scalar() or 0
    return {
        "totalProducts": Product.query.count(),
        "totalOrders": Preorder.query.count(),
        "activeUsers": AdminUser.query.count(),
        "revenue": int(revenue_cents) // 100,
    }
