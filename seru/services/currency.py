from datetime import date

def format_rupiah(amount) -> str:
    """Formats a whole-Rupiah amount the Indonesian way, e.g. ``Rp 1.500.000``."""
    value = int(amount or 0)
    return "Rp " + f"{value:,}".replace(",", ".")

def format_display_date(value: date) -> str:
    """``26 Oct 2025`` style dates for dashboard tables."""
    return value.strftime("%d %b %Y")

def format_booking_code(booking_id: int) -> str:
    return f"BK{booking_id:03d}"
