import uuid
from datetime import date
from unittest.mock import patch

import smtplib

from lifecycle.services.email_service import (
    EmailService,
    render_daily_alert_html,
    render_weekly_report_html,
)
from lifecycle.services.expiry import ExpiryStatus
from lifecycle.services.notification_selector import (
    BatchAlert,
    CategoryCount,
    WeeklyReport,
    WeeklyStats,
)


def alert(name="Milk", status=ExpiryStatus.URGENT, days_left=2, batch_number="M-1"):
    return BatchAlert(
        product_id=uuid.uuid4(),
        product_name=name,
        category="Dairy",
        batch_id=uuid.uuid4(),
        batch_number=batch_number,
        expiry_date=date(2026, 3, 12),
        quantity=4,
        days_until_expiry=days_left,
        status=status,
    )


def configured_service():
    return EmailService(
        smtp_host="smtp.test",
        smtp_port=587,
        smtp_user="alerts@lifecycle.test",
        smtp_password="secret",
        frontend_url="https://app.lifecycle.test/",
    )


def test_daily_html_lists_every_alert_and_escapes_names():
    html = render_daily_alert_html(
        "Bob's <Deli>",
        [alert("Milk"), alert("<script>", status=ExpiryStatus.EXPIRED, days_left=-1)],
        7,
        "https://app.lifecycle.test/dashboard",
    )
    assert "2 products" in html
    assert "next 7 days" in html
    assert "Milk" in html
    assert "&lt;script&gt;" in html
    assert "<script>" not in html
    assert "Bob&#x27;s &lt;Deli&gt;" in html
    assert "Expired" in html and "Urgent" in html
    assert "Mar 12, 2026" in html


def test_weekly_html_shows_stats_and_sections():
    report = WeeklyReport(
        stats=WeeklyStats(
            total_products=3,
            expired_count=1,
            expiring_soon_count=2,
            category_breakdown=[CategoryCount("Dairy", 2), CategoryCount("Bakery", 1)],
        ),
        recently_expired=[alert("Old Bread", ExpiryStatus.EXPIRED, -1)],
        expiring_soon=[alert("Milk", ExpiryStatus.URGENT, 2)],
    )
    html = render_weekly_report_html("Shop", report, "https://x/dashboard", week_of=date(2026, 3, 9))

    assert "Week of March 09, 2026" in html
    assert "Dairy (2)" in html
    assert "Recently Expired Products" in html
    assert "Products Expiring Soon" in html
    assert "2 days" in html


def test_weekly_html_omits_empty_sections():
    html = render_weekly_report_html("Shop", WeeklyReport(stats=WeeklyStats()), "https://x/dashboard")
    assert "Recently Expired Products" not in html
    assert "Products Expiring Soon" not in html


def test_send_without_credentials_returns_false():
    service = EmailService()
    assert service.send_email("owner@shop.test", "Subject", "<p>hi</p>") is False


def test_send_daily_alert_uses_smtp():
    service = configured_service()
    with patch("lifecycle.services.email_service.smtplib.SMTP") as smtp:
        server = smtp.return_value.__enter__.return_value
        assert service.send_daily_expiry_alert("owner@shop.test", "Shop", [alert()], 7)

    smtp.assert_called_once_with("smtp.test", 587, timeout=10)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("alerts@lifecycle.test", "secret")
    from_addr, to_addr, message = server.sendmail.call_args.args
    assert from_addr == "alerts@lifecycle.test"
    assert to_addr == "owner@shop.test"
    assert "Daily Expiry Alert - 1 product expiring in next 7 days" in message


def test_send_failure_returns_false():
    service = configured_service()
    with patch("lifecycle.services.email_service.smtplib.SMTP") as smtp:
        server = smtp.return_value.__enter__.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        assert service.send_weekly_report("owner@shop.test", "Shop", WeeklyReport(stats=WeeklyStats())) is False


def test_dashboard_url_strips_trailing_slash():
    assert configured_service().dashboard_url == "https://app.lifecycle.test/dashboard"
