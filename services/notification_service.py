# services/notification_service.py

from flask import current_app
from db.extensions import db
from models.notification import Notification
from services.utils import send_email

STATUS_SUBJECTS = {
    'approved': "You're approved - start going live on Aqui",
    'rejected': "Update on your Aqui vendor application",
    'pending': "Your Aqui vendor application is under review",
}


class NotificationService:
    """
    In-app notifications plus the matching emails.

    Notification rows are added to the current session; the caller commits
    them together with the change that triggered them.
    """

    @staticmethod
    def notify_admins(notification_type, message, link=None):
        notification = Notification(
            recipient_id=None,
            type=notification_type,
            message=message,
            link=link
        )
        db.session.add(notification)

        admin_email = current_app.config.get('ADMIN_NOTIFICATION_EMAIL')
        if admin_email:
            send_email(f"[Aqui admin] {notification_type.replace('_', ' ').title()}", [admin_email], message)
        return notification

    @staticmethod
    def notify_user(user_id, notification_type, message, link=None):
        notification = Notification(
            recipient_id=user_id,
            type=notification_type,
            message=message,
            link=link
        )
        db.session.add(notification)
        return notification

    @staticmethod
    def _vendor_email(vendor):
        if vendor.contact_email:
            return vendor.contact_email
        return vendor.user.email if vendor.user else None

    @staticmethod
    def send_vendor_status_email(vendor, reason=None):
        """Tell the vendor owner their approval status changed."""
        recipient = NotificationService._vendor_email(vendor)
        if not recipient:
            current_app.logger.warning(f"Vendor {vendor.id} has no email, status email skipped")
            return False

        subject = STATUS_SUBJECTS.get(vendor.status, "Your Aqui vendor status changed")
        if vendor.status == 'approved':
            headline = "Your vendor profile has been approved."
            detail = "You can now go live and appear on the Aqui map for nearby customers."
        elif vendor.status == 'rejected':
            headline = "We couldn't approve your vendor profile yet."
            detail = f"Reason: {reason}" if reason else "Please review your profile details and contact support."
        else:
            headline = "Your vendor profile is being reviewed."
            detail = "We'll email you as soon as an admin has looked at it."

        text_body = f"""Hello {vendor.business_name},

{headline}
{detail}

- The Aqui team
"""
        html_body = f"""
<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; color: #222;">
<div style="max-width: 600px; margin: auto; padding: 20px; border: 1px solid #eee;">
    <h1 style="font-size: 20px;">{headline}</h1>
    <p>Hello <strong>{vendor.business_name}</strong>,</p>
    <p>{detail}</p>
    <p style="color: #888; font-size: 11px; border-top: 1px solid #eee; padding-top: 8px;">
        Aqui | This is an automated message.
    </p>
</div>
</body>
</html>
"""
        return send_email(subject, [recipient], text_body, html=html_body)

    @staticmethod
    def send_vendor_welcome_email(vendor):
        recipient = NotificationService._vendor_email(vendor)
        if not recipient:
            return False

        if vendor.status == 'approved':
            next_step = "Your profile is approved, so you can go live right away."
        else:
            next_step = "An admin will review your profile shortly; we'll email you when it's approved."

        text_body = f"""Welcome to Aqui, {vendor.business_name}!

{next_step}

- The Aqui team
"""
        return send_email("Welcome to Aqui", [recipient], text_body)
