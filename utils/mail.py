"""
Email utility functions
"""
import smtplib
import ssl
import threading

from flask_mail import Connection, Mail, Message
from flask import current_app

mail = Mail()

# OpenSSL X509_V_ERR_SELF_SIGNED_CERT_IN_CHAIN
SELF_SIGNED_CERT_IN_CHAIN = 19


class TLSConnection(Connection):
    """
    Flask-Mail connection with explicit control over certificate checks.
    `verify=False` accepts any certificate and is only used as a retry.
    """

    def __init__(self, mail_state, verify=True):
        super().__init__(mail_state)
        self.verify = verify

    def _ssl_context(self):
        context = ssl.create_default_context()
        if not self.verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def configure_host(self):
        context = self._ssl_context()
        if self.mail.use_ssl:
            host = smtplib.SMTP_SSL(self.mail.server, self.mail.port, context=context)
        else:
            host = smtplib.SMTP(self.mail.server, self.mail.port)

        # __exit__ never runs when __enter__ fails, so close here
        try:
            host.set_debuglevel(int(self.mail.debug))

            if self.mail.use_tls:
                (resp, reply) = host.starttls(context=context)
                if resp != 220:
                    raise smtplib.SMTPResponseException(resp, reply)
            if self.mail.username and self.mail.password:
                host.login(self.mail.username, self.mail.password)
        except Exception:
            host.close()
            raise

        return host


def _mail_state():
    try:
        return current_app.extensions['mail']
    except KeyError:
        raise RuntimeError("Mail extension not initialized. Check app configuration.")


def _deliver(msg, verify=True):
    with TLSConnection(_mail_state(), verify=verify) as conn:
        conn.send(msg)


def is_self_signed_chain_error(exc):
    """True for the TLS failure raised by a self signed certificate in the server's chain."""
    if not isinstance(exc, ssl.SSLCertVerificationError):
        return False
    if getattr(exc, 'verify_code', None) == SELF_SIGNED_CERT_IN_CHAIN:
        return True
    return 'self signed certificate in certificate chain' in str(exc).replace('-', ' ')


def send_with_fallback(msg):
    """
    Send `msg`, retrying once without certificate verification when the mail
    server presents a self signed certificate chain. Other errors propagate.
    """
    if not current_app.config.get('MAIL_SERVER'):
        raise RuntimeError("MAIL_SERVER not configured. Please set MAIL_SERVER environment variable.")

    try:
        _deliver(msg)
    except ssl.SSLCertVerificationError as e:
        if not is_self_signed_chain_error(e):
            raise
        current_app.logger.warning(
            "Self signed certificate in certificate chain. Retrying with the self signed "
            "certificate. Use a valid certificate if in production."
        )
        _deliver(msg, verify=False)


def send_async(msg):
    """
    Send `msg` with send_with_fallback on a daemon thread; failures are logged.
    Runs inline when MAIL_SEND_ASYNC is off. Returns the thread, if any.
    """
    app = current_app._get_current_object()

    def send_email_bg():
        with app.app_context():
            try:
                send_with_fallback(msg)
            except Exception as e:
                app.logger.error(f"Error sending email to {', '.join(msg.recipients)}: {str(e)}", exc_info=True)

    if not app.config.get('MAIL_SEND_ASYNC', True):
        send_email_bg()
        return None
    thread = threading.Thread(target=send_email_bg, daemon=True)
    thread.start()
    return thread


def password_reset_message(user, reset_url):
    """Reset link email for `user`."""
    subject = "Reset password requested"
    body = f"""You are receiving this email because you (or someone else) have requested the reset of the password for your account.

Please click on the following link, or paste this into your browser to complete the process:

{reset_url}

This link will expire in 1 hour.

If you did not request this, please ignore this email and your password will remain unchanged.
"""
    html = _password_reset_email_html(reset_url)
    return Message(
        subject=subject,
        recipients=[user.email],
        body=body,
        html=html,
    )


def password_changed_message(user):
    subject = "Your password has been changed"
    body = f"Hello,\n\nThis is a confirmation that the password for your account {user.email} has just been changed.\n"
    return Message(
        subject=subject,
        recipients=[user.email],
        body=body,
    )


def send_password_reset_email(user, reset_url):
    """
    Send password reset email to user with reset link.
    Raises on delivery failure so the caller can answer the request accordingly.
    """
    msg = password_reset_message(user, reset_url)
    try:
        send_with_fallback(msg)
    except Exception as e:
        current_app.logger.error(f"Could not send password reset email to {user.email}: {str(e)}", exc_info=True)
        raise


def send_password_changed_email(user):
    """Confirmation after a completed reset; never raises into the request."""
    return send_async(password_changed_message(user))


def _password_reset_email_html(reset_url: str) -> str:
    """Clean HTML template for password reset email."""
    return f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="utf-8"><title>Reset Your Password</title></head>
    <body style="font-family: system-ui, sans-serif; max-width: 480px; margin: 0 auto; padding: 24px;">
        <h2 style="color: #1a1a2e;">Reset Your Password</h2>
        <p>You (or someone else) requested to reset the password for your account.</p>
        <p style="margin: 24px 0;">
            <a href="{reset_url}"
               style="display: inline-block; padding: 12px 24px; background-color: #16213e; color: white; text-decoration: none; border-radius: 6px; font-weight: bold;">
                Reset Password
            </a>
        </p>
        <p style="color: #666;">Or copy and paste this link into your browser:</p>
        <p style="color: #999; font-size: 12px; word-break: break-all;">{reset_url}</p>
        <p style="color: #666;">This link will expire in 1 hour.</p>
        <hr style="border: none; border-top: 1px solid #eee; margin: 24px 0;">
        <p style="font-size: 12px; color: #999;">If you did not request this, please ignore this email and your password will remain unchanged.</p>
    </body>
    </html>
    """
