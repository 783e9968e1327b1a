import smtplib
from datetime import date
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import List, Optional
import logging

from lifecycle.services.expiry import ExpiryStatus
from lifecycle.services.notification_selector import BatchAlert, WeeklyReport

logger = logging.getLogger(__name__)


# Badge colors per status: (label, text color, background)
STATUS_BADGES = {
    ExpiryStatus.EXPIRED: ("Expired", "#ef4444", "#fef2f2"),
    ExpiryStatus.URGENT: ("Urgent", "#f59e0b", "#fffbeb"),
    ExpiryStatus.WARNING: ("Warning", "#eab308", "#fefce8"),
    ExpiryStatus.OK: ("Notice", "#6366f1", "#f0f4ff"),
}


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _batch_cell(alert: BatchAlert) -> str:
    batch_line = (
        f'<div style="font-size: 12px; color: #6b7280;">Batch: {escape(alert.batch_number)}</div>'
        if alert.batch_number else ""
    )
    return f"<strong>{escape(alert.product_name)}</strong>{batch_line}"


def _status_badge(alert: BatchAlert) -> str:
    label, color, background = STATUS_BADGES[alert.status]
    return (
        f'<span style="display: inline-block; padding: 4px 8px; border-radius: 4px; font-size: 12px; '
        f'text-transform: uppercase; background-color: {background}; color: {color};">{label}</span>'
    )


def render_daily_alert_html(
    business_name: str,
    alerts: List[BatchAlert],
    alert_threshold: int,
    dashboard_url: str,
) -> str:
    """HTML body of the daily expiry alert."""
    rows = "".join(
        f"""
            <tr>
                <td style="padding: 12px; border-bottom: 1px solid #e5e7eb;">{_batch_cell(alert)}</td>
                <td style="padding: 12px; border-bottom: 1px solid #e5e7eb;">{escape(alert.category)}</td>
                <td style="padding: 12px; border-bottom: 1px solid #e5e7eb;">{alert.expiry_date.strftime('%b %d, %Y')}</td>
                <td style="padding: 12px; border-bottom: 1px solid #e5e7eb;">{_status_badge(alert)}</td>
                <td style="padding: 12px; border-bottom: 1px solid #e5e7eb;">{alert.quantity}</td>
            </tr>
        """
        for alert in alerts
    )

    return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
            <title>Product Expiry Alert - LifeCycle</title>
        </head>
        <body style="font-family: 'Segoe UI', Arial, sans-serif; line-height: 1.6; color: #374151; background-color: #f9fafb;">
            <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff;">
                <div style="background: #6366f1; color: white; padding: 32px 24px; text-align: center;">
                    <h1 style="margin: 0; font-size: 24px;">Product Expiry Alert</h1>
                    <p style="margin: 8px 0 0 0;">Action required for {escape(business_name)}</p>
                </div>
                <div style="padding: 32px 24px;">
                    <p>You have <strong>{_plural(len(alerts), 'product')}</strong> expiring within the next {alert_threshold} days that require your attention.</p>
                    <table style="width: 100%; border-collapse: collapse; margin: 24px 0;">
                        <thead>
                            <tr>
                                <th style="padding: 12px; text-align: left;">Product</th>
                                <th style="padding: 12px; text-align: left;">Category</th>
                                <th style="padding: 12px; text-align: left;">Expiry Date</th>
                                <th style="padding: 12px; text-align: left;">Status</th>
                                <th style="padding: 12px; text-align: left;">Quantity</th>
                            </tr>
                        </thead>
                        <tbody>{rows}</tbody>
                    </table>
                    <p style="text-align: center;">
                        <a href="{dashboard_url}" style="display: inline-block; background-color: #6366f1; color: white; text-decoration: none; padding: 12px 24px; border-radius: 6px;">View Dashboard</a>
                    </p>
                    <p style="font-size: 14px; color: #6b7280;">This is an automated alert from LifeCycle. You can manage your notification preferences in your account settings.</p>
                </div>
            </div>
        </body>
        </html>
        """


def _weekly_rows(alerts: List[BatchAlert], expired: bool) -> str:
    return "".join(
        f"""
            <tr>
                <td style="padding: 10px; border-bottom: 1px solid #e5e7eb;">{_batch_cell(alert)}</td>
                <td style="padding: 10px; border-bottom: 1px solid #e5e7eb;">{escape(alert.category)}</td>
                <td style="padding: 10px; border-bottom: 1px solid #e5e7eb;">{alert.expiry_date.strftime('%b %d, %Y')}</td>
                <td style="padding: 10px; border-bottom: 1px solid #e5e7eb;">{'Expired' if expired else _plural(alert.days_until_expiry, 'day')}</td>
            </tr>
        """
        for alert in alerts
    )


def _weekly_section(title: str, alerts: List[BatchAlert], expired: bool) -> str:
    if not alerts:
        return ""
    return f"""
        <h2 style="font-size: 18px; border-bottom: 2px solid #e2e8f0; padding-bottom: 8px;">{title}</h2>
        <table style="width: 100%; border-collapse: collapse; margin: 16px 0; font-size: 14px;">
            <tbody>{_weekly_rows(alerts, expired)}</tbody>
        </table>
    """


def render_weekly_report_html(
    business_name: str,
    report: WeeklyReport,
    dashboard_url: str,
    week_of: Optional[date] = None,
) -> str:
    """HTML body of the weekly report."""
    week_of = week_of or date.today()
    stats = report.stats
    categories = "".join(
        f'<span style="background-color: #f0f4ff; color: #6366f1; padding: 6px 12px; border-radius: 16px; font-size: 12px;">'
        f'{escape(item.category)} ({item.count})</span> '
        for item in stats.top_categories()
    )

    return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
            <title>Weekly Report - LifeCycle</title>
        </head>
        <body style="font-family: 'Segoe UI', Arial, sans-serif; line-height: 1.6; color: #374151; background-color: #f9fafb;">
            <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff;">
                <div style="background: #6366f1; color: white; padding: 32px 24px; text-align: center;">
                    <h1 style="margin: 0; font-size: 24px;">Weekly Report</h1>
                    <p style="margin: 8px 0 0 0;">{escape(business_name)} - Week of {week_of.strftime('%B %d, %Y')}</p>
                </div>
                <div style="padding: 32px 24px;">
                    <p>Here's your weekly overview of product inventory and expiry status.</p>
                    <table style="width: 100%; text-align: center; margin: 24px 0;">
                        <tr>
                            <td><div style="font-size: 24px; font-weight: 700; color: #6366f1;">{stats.total_products}</div>Total Products</td>
                            <td><div style="font-size: 24px; font-weight: 700; color: #6366f1;">{stats.expired_count}</div>Expired</td>
                            <td><div style="font-size: 24px; font-weight: 700; color: #6366f1;">{stats.expiring_soon_count}</div>Expiring Soon</td>
                        </tr>
                    </table>
                    <h2 style="font-size: 18px; border-bottom: 2px solid #e2e8f0; padding-bottom: 8px;">Top Categories</h2>
                    <div style="margin: 16px 0;">{categories}</div>
                    {_weekly_section('Recently Expired Products', report.recently_expired, expired=True)}
                    {_weekly_section('Products Expiring Soon', report.expiring_soon, expired=False)}
                    <p style="text-align: center;">
                        <a href="{dashboard_url}" style="display: inline-block; background-color: #6366f1; color: white; text-decoration: none; padding: 12px 24px; border-radius: 6px;">View Full Dashboard</a>
                    </p>
                </div>
            </div>
        </body>
        </html>
        """


class EmailService:
    """Email service for sending notification emails via SMTP."""

    def __init__(
        self,
        smtp_host: str = "smtp.gmail.com",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        from_email: str = "",
        from_name: str = "LifeCycle",
        frontend_url: str = "https://app.lifecycle.cloud",
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email or smtp_user
        self.from_name = from_name
        self.frontend_url = frontend_url.rstrip("/")

    @property
    def dashboard_url(self) -> str:
        return f"{self.frontend_url}/dashboard"

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email over SMTP with STARTTLS.

        Returns:
            True if email sent successfully, False otherwise
        """
        if not self.smtp_user or not self.smtp_password:
            logger.warning("Email not configured. SMTP credentials missing.")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to_email, msg.as_string())

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except smtplib.SMTPAuthenticationError:
            logger.error("SMTP Authentication failed. Check email credentials.")
            return False
        except smtplib.SMTPException as e:
            logger.error(f"SMTP error: {e}")
            return False
        except TimeoutError:
            logger.error("SMTP connection timed out")
            return False
        except OSError as e:
            logger.error(f"Network error sending email: {e}")
            return False

    def send_daily_expiry_alert(
        self,
        to_email: str,
        business_name: str,
        alerts: List[BatchAlert],
        alert_threshold: int,
    ) -> bool:
        """Daily operational email listing every batch inside the alert threshold."""
        subject = (
            f"Daily Expiry Alert - {_plural(len(alerts), 'product')} "
            f"expiring in next {alert_threshold} days"
        )
        html_content = render_daily_alert_html(business_name, alerts, alert_threshold, self.dashboard_url)
        text_lines = [
            f"- {a.product_name} ({a.category}): {a.status.value}, "
            f"{a.days_until_expiry} days, qty {a.quantity}"
            for a in alerts
        ]
        text_content = "Product Expiry Alert\n\n" + "\n".join(text_lines)
        return self.send_email(to_email, subject, html_content, text_content)

    def send_weekly_report(
        self,
        to_email: str,
        business_name: str,
        report: WeeklyReport,
    ) -> bool:
        """Weekly digest with summary statistics and capped lists."""
        subject = f"Weekly Report - {_plural(report.stats.total_products, 'product')} in your inventory"
        html_content = render_weekly_report_html(business_name, report, self.dashboard_url)
        text_content = (
            f"Weekly Report for {business_name}\n\n"
            f"Total products: {report.stats.total_products}\n"
            f"Expired: {report.stats.expired_count}\n"
            f"Expiring soon: {report.stats.expiring_soon_count}\n"
        )
        return self.send_email(to_email, subject, html_content, text_content)


def get_email_service() -> EmailService:
    """Get configured email service instance."""
    from lifecycle.config import settings

    return EmailService(
        smtp_host=settings.SMTP_HOST,
        smtp_port=settings.SMTP_PORT,
        smtp_user=settings.SMTP_USER,
        smtp_password=settings.SMTP_PASSWORD,
        from_email=settings.SMTP_FROM_EMAIL,
        from_name=settings.SMTP_FROM_NAME,
        frontend_url=settings.FRONTEND_URL,
    )
