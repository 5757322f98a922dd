"""
HTML email templates for one-time code delivery.
Inline styles and table layout keep rendering consistent across mail clients.
"""

from html import escape

PASSWORD_RESET_SUBJECT = "Password Reset Request"
EMAIL_VERIFICATION_SUBJECT = "Email Verification Code"


class EmailTemplateBuilder:
    """Renders branded OTP emails."""

    def __init__(self, company_name: str, company_email: str, company_website: str):
        self.company_name = company_name
        self.company_email = company_email
        self.company_website = company_website

    @classmethod
    def from_settings(cls, settings) -> "EmailTemplateBuilder":
        return cls(
            company_name=settings.COMPANY_NAME,
            company_email=settings.COMPANY_EMAIL,
            company_website=settings.COMPANY_WEBSITE_URL,
        )

    def build_password_reset(self, recipient_name: str, otp: str) -> str:
        return self._otp_email(
            title=PASSWORD_RESET_SUBJECT,
            recipient_name=recipient_name,
            intro="We received a request to reset your password. Please use the "
            "one-time password (OTP) below to continue:",
            otp=otp,
            footer_note="If you did not request a password reset, you can safely ignore this email.",
        )

    def build_email_verification(self, recipient_name: str, otp: str) -> str:
        return self._otp_email(
            title=EMAIL_VERIFICATION_SUBJECT,
            recipient_name=recipient_name,
            intro="We received a request to verify your email address. Please use "
            "the one-time password (OTP) below to continue:",
            otp=otp,
            footer_note="If you did not request a verification code, please ignore this email.",
        )

    def _otp_email(self, title: str, recipient_name: str, intro: str, otp: str, footer_note: str) -> str:
        company = escape(self.company_name)
        return f"""<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>{escape(title)}</title>
  </head>
  <body style="margin: 0; padding: 0; background-color: #f7fafc; font-family: Helvetica, Arial, sans-serif;">
    <table role="presentation" border="0" cellpadding="0" cellspacing="0" width="100%" bgcolor="#f7fafc">
      <tr>
        <td align="center" style="padding: 40px 16px;">
          <table role="presentation" border="0" cellpadding="0" cellspacing="0" style="max-width: 600px; width: 100%; margin: 0 auto;">
            <tr>
              <td style="background-color: #ffffff; border: 1px solid #e2e8f0; border-radius: 6px; padding: 40px;">
                <h1 style="margin-top: 0; font-size: 24px; font-weight: 700;">{escape(title)}</h1>
                <p>Hi {escape(recipient_name)},</p>
                <p>{escape(intro)}</p>
                <div style="margin: 32px 0; text-align: center;">
                  <span style="display: inline-block; padding: 12px 24px; background-color: #edf2f7; border-radius: 6px; font-size: 24px; font-weight: bold; letter-spacing: 4px;">{escape(otp)}</span>
                </div>
                <p>Thank you,</p>
                <p>The {company} Team</p>
                <p style="font-size: 14px; color: #6c757d; margin-top: 32px;">{escape(footer_note)}</p>
              </td>
            </tr>
            <tr>
              <td style="height: 24px;">&nbsp;</td>
            </tr>
            <tr>
              <td style="color: #718096; font-size: 14px; text-align: center;">
                {escape(self.company_email)}<br />
                {escape(self.company_website)}
              </td>
            </tr>
          </table>
        </td>
      </tr>
    </table>
  </body>
</html>
"""
